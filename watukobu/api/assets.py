"""
Asset registry API endpoints: loan case CRUD and bulk import.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from watukobu.core.config import settings
from watukobu.core.dependencies import get_asset_service
from watukobu.core.exceptions import DatabaseError, InternalServerError, PermissionDeniedError
from watukobu.core.logging import get_logger
from watukobu.core.security import get_current_user, require_admin, require_management
from watukobu.models.database import User
from watukobu.models.enums import AssetStatus, Role, SpkStatus
from watukobu.schemas.asset import (
    AssetCreate, AssetEnvelope, AssetFilter, AssetListResponse, AssetResponse, AssetStatsResponse,
    AssetUpdate, BankCsvImportRequest, BulkDeleteRequest, BulkDeleteResponse, BulkImportRequest,
    ImportResult,
)
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse, MessageResponse
from watukobu.services.asset_service import AssetService

logger = get_logger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}


def _ensure_visible(asset, user: User) -> None:
    if user.role == Role.COLLECTOR.value and asset.collector_id != user.id:
        raise PermissionDeniedError("Asset is not assigned to you", role=user.role)


@router.get(
    "",
    response_model=AssetListResponse,
    responses=COMMON_RESPONSES,
    summary="List assets",
    description="List loan cases, largest arrears first. Collectors only see their own cases.",
)
async def list_assets(
    collector_id: Optional[str] = Query(default=None, alias="collectorId"),
    unassigned: bool = False,
    branch: Optional[str] = None,
    spk_status: Optional[SpkStatus] = Query(default=None, alias="spkStatus"),
    asset_status: Optional[AssetStatus] = Query(default=None, alias="status"),
    min_arrears: Optional[float] = Query(default=None, alias="minArrears", ge=0),
    search: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetListResponse:
    try:
        if user.role == Role.COLLECTOR.value:
            collector_id, unassigned = user.id, False
        filters = AssetFilter(
            collector_id=collector_id,
            unassigned=unassigned,
            branch=branch,
            spk_status=spk_status,
            status=asset_status,
            min_arrears=min_arrears,
            search=search,
            limit=min(limit or settings.default_page_size, settings.max_page_size),
            offset=offset,
        )
        assets = await asset_service.list_assets(filters)
        return AssetListResponse(
            data=[AssetResponse.model_validate(a) for a in assets],
            count=len(assets),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing assets", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "",
    response_model=AssetEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing loan id"},
        409: {"model": ErrorResponse, "description": "Loan id already registered"},
        **COMMON_RESPONSES,
    },
    summary="Create asset",
)
async def create_asset(
    data: AssetCreate,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetEnvelope:
    try:
        asset = await asset_service.create_asset(data)
        return AssetEnvelope(data=AssetResponse.model_validate(asset))
    except HTTPException:
        raise
    except DatabaseError as e:
        logger.error("Database error creating asset", loan_id=data.loan_id, error=str(e), operation=e.context.get("operation"))
        raise InternalServerError("Database error while creating asset")
    except Exception as e:
        logger.error("Unexpected error creating asset", loan_id=data.loan_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/stats",
    response_model=AssetStatsResponse,
    responses=COMMON_RESPONSES,
    summary="Registry statistics",
)
async def asset_stats(
    user: User = Depends(require_management),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetStatsResponse:
    try:
        return AssetStatsResponse(data=await asset_service.asset_stats())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error computing asset stats", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/recent",
    response_model=AssetListResponse,
    responses=COMMON_RESPONSES,
    summary="Recently changed assets",
)
async def recent_assets(
    limit: int = Query(default=5, ge=1, le=50),
    user: User = Depends(require_management),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetListResponse:
    try:
        assets = await asset_service.recent_assets(limit)
        return AssetListResponse(data=[AssetResponse.model_validate(a) for a in assets], count=len(assets))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing recent assets", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/import",
    response_model=ImportResult,
    responses={400: {"model": ErrorResponse, "description": "No assets provided"}, **COMMON_RESPONSES},
    summary="Bulk import assets",
    description="Import mapped rows; rows without a loan id or with a known loan id are skipped.",
)
async def import_assets(
    request: BulkImportRequest,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> ImportResult:
    try:
        result = await asset_service.import_assets(request.assets)
        return ImportResult(**result)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error importing assets", row_count=len(request.assets), error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/import/bank-csv",
    response_model=ImportResult,
    responses={400: {"model": ErrorResponse, "description": "Unreadable bank export"}, **COMMON_RESPONSES},
    summary="Import a bank CSV export",
    description="Detect the delimiter, map the bank's column headers and import every usable row.",
)
async def import_bank_csv(
    request: BankCsvImportRequest,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> ImportResult:
    try:
        result, original_row_count = await asset_service.import_bank_csv(request.content)
        return ImportResult(**result, original_row_count=original_row_count)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error importing bank CSV", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/bulk-delete",
    response_model=BulkDeleteResponse,
    responses=COMMON_RESPONSES,
    summary="Delete several assets",
)
async def bulk_delete_assets(
    request: BulkDeleteRequest,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> BulkDeleteResponse:
    try:
        deleted = await asset_service.delete_assets(request.asset_ids)
        return BulkDeleteResponse(deleted_count=deleted)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error deleting assets", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/{asset_id}",
    response_model=AssetEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Get asset",
)
async def get_asset(
    asset_id: str,
    user: User = Depends(get_current_user),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetEnvelope:
    try:
        asset = await asset_service.get_asset(asset_id)
        _ensure_visible(asset, user)
        return AssetEnvelope(data=AssetResponse.model_validate(asset))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error fetching asset", asset_id=asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.patch(
    "/{asset_id}",
    response_model=AssetEnvelope,
    responses={
        404: {"model": ErrorResponse, "description": "Asset not found"},
        409: {"model": ErrorResponse, "description": "Loan id already registered"},
        **COMMON_RESPONSES,
    },
    summary="Update asset",
)
async def update_asset(
    asset_id: str,
    data: AssetUpdate,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetEnvelope:
    try:
        asset = await asset_service.update_asset(asset_id, data)
        return AssetEnvelope(data=AssetResponse.model_validate(asset))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error updating asset", asset_id=asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.delete(
    "/{asset_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Delete asset",
)
async def delete_asset(
    asset_id: str,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> MessageResponse:
    try:
        await asset_service.delete_asset(asset_id)
        return MessageResponse(message="Asset deleted")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error deleting asset", asset_id=asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/{asset_id}/unassign",
    response_model=AssetEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Remove the collector from an asset",
)
async def unassign_asset(
    asset_id: str,
    user: User = Depends(require_admin),
    asset_service: AssetService = Depends(get_asset_service),
) -> AssetEnvelope:
    try:
        asset = await asset_service.unassign_asset(asset_id)
        return AssetEnvelope(data=AssetResponse.model_validate(asset))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error unassigning asset", asset_id=asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
