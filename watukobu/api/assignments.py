"""
Assignment API endpoints: collector workloads, the unassigned queue and bulk assignment.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from watukobu.core.dependencies import get_assignment_service
from watukobu.core.logging import get_logger
from watukobu.core.security import require_admin, require_management
from watukobu.models.database import User
from watukobu.models.enums import SpkStatus
from watukobu.schemas.assignment import (
    AssignmentQueueResponse, AssignRequest, AssignResponse, QueueFilter,
    RecommendationResponse, WorkloadListResponse,
)
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse
from watukobu.services.assignment_service import AssignmentService

logger = get_logger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}


@router.get(
    "/workloads",
    response_model=WorkloadListResponse,
    responses=COMMON_RESPONSES,
    summary="Collector workloads",
    description="Active collectors ordered by case count, lightest first; the first is recommended.",
)
async def collector_workloads(
    user: User = Depends(require_management),
    assignment_service: AssignmentService = Depends(get_assignment_service),
) -> WorkloadListResponse:
    try:
        return WorkloadListResponse(data=await assignment_service.collector_workloads())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error computing workloads", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/recommendation",
    response_model=RecommendationResponse,
    responses=COMMON_RESPONSES,
    summary="Recommended collector",
)
async def recommend_collector(
    user: User = Depends(require_management),
    assignment_service: AssignmentService = Depends(get_assignment_service),
) -> RecommendationResponse:
    try:
        return RecommendationResponse(data=await assignment_service.recommend_collector())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error recommending collector", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/queue",
    response_model=AssignmentQueueResponse,
    responses=COMMON_RESPONSES,
    summary="Unassigned case queue",
)
async def assignment_queue(
    branch: Optional[str] = None,
    spk_status: Optional[SpkStatus] = Query(default=None, alias="spkStatus"),
    min_arrears: Optional[float] = Query(default=None, alias="minArrears", ge=0),
    user: User = Depends(require_management),
    assignment_service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentQueueResponse:
    try:
        filters = QueueFilter(branch=branch, spk_status=spk_status, min_arrears=min_arrears)
        return AssignmentQueueResponse(data=await assignment_service.assignment_queue(filters))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building assignment queue", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/assign",
    response_model=AssignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Empty asset list or invalid collector"},
        **COMMON_RESPONSES,
    },
    summary="Assign assets to a collector",
    description="Assign to the given collector, or to the recommended one when none is given.",
)
async def assign_assets(
    request: AssignRequest,
    user: User = Depends(require_admin),
    assignment_service: AssignmentService = Depends(get_assignment_service),
) -> AssignResponse:
    try:
        if request.collector_id:
            result = await assignment_service.assign_assets(request.asset_ids, request.collector_id, user.id)
        else:
            result = await assignment_service.auto_assign(request.asset_ids, user.id)
        return AssignResponse(
            message=f"{result.assigned_count} aset berhasil ditugaskan ke {result.collector_name}",
            data=result,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error assigning assets",
            collector_id=request.collector_id,
            asset_count=len(request.asset_ids),
            error=str(e),
        )
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/auto-assign",
    response_model=AssignResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Empty asset list or no active collectors"},
        **COMMON_RESPONSES,
    },
    summary="Assign assets to the least loaded collector",
)
async def auto_assign(
    request: AssignRequest,
    user: User = Depends(require_admin),
    assignment_service: AssignmentService = Depends(get_assignment_service),
) -> AssignResponse:
    try:
        result = await assignment_service.auto_assign(request.asset_ids, user.id)
        return AssignResponse(
            message=f"{result.assigned_count} aset berhasil ditugaskan ke {result.collector_name}",
            data=result,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error auto-assigning assets", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
