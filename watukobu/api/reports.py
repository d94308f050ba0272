"""
Field evidence API endpoints: visit and payment reports and their review.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from watukobu.core.dependencies import get_validation_service
from watukobu.core.logging import get_logger
from watukobu.core.security import get_current_user, require_collector, require_management
from watukobu.models.database import User
from watukobu.models.enums import PaymentMatchStatus, ValidationStatus
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse
from watukobu.schemas.report import (
    PaymentDecision, PaymentReportCreate, PaymentReportEnvelope, PaymentReportListResponse,
    ValidationCountsResponse, VisitDecision, VisitReportCreate, VisitReportEnvelope,
    VisitReportListResponse,
)
from watukobu.services.validation_service import ValidationService

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}

REVIEW_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid decision status"},
    404: {"model": ErrorResponse, "description": "Report not found"},
    422: {"model": ErrorResponse, "description": "Report already processed"},
    **COMMON_RESPONSES,
}


@router.post(
    "/visits",
    response_model=VisitReportEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Submit a visit report",
    description="Record a field visit with GPS and photo evidence; it waits for admin validation.",
)
async def submit_visit(
    data: VisitReportCreate,
    user: User = Depends(require_collector),
    validation_service: ValidationService = Depends(get_validation_service),
) -> VisitReportEnvelope:
    try:
        report = await validation_service.submit_visit(user, data)
        return VisitReportEnvelope(data=validation_service.visit_to_response(report))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error submitting visit", asset_id=data.asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/visits",
    response_model=VisitReportListResponse,
    responses=COMMON_RESPONSES,
    summary="List visit reports",
    description="Newest first. Collectors only see reports they submitted.",
)
async def list_visits(
    report_status: Optional[ValidationStatus] = Query(default=None, alias="status"),
    asset_id: Optional[str] = Query(default=None, alias="assetId"),
    user: User = Depends(get_current_user),
    validation_service: ValidationService = Depends(get_validation_service),
) -> VisitReportListResponse:
    try:
        reports = await validation_service.list_visits(user, report_status, asset_id)
        return VisitReportListResponse(
            data=[validation_service.visit_to_response(r) for r in reports],
            count=len(reports),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing visits", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/visits/counts",
    response_model=ValidationCountsResponse,
    responses=COMMON_RESPONSES,
    summary="Pending and suspicious evidence counts",
)
async def validation_counts(
    user: User = Depends(require_management),
    validation_service: ValidationService = Depends(get_validation_service),
) -> ValidationCountsResponse:
    try:
        return ValidationCountsResponse(data=await validation_service.visit_counts())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error counting pending evidence", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.patch(
    "/visits/{report_id}",
    response_model=VisitReportEnvelope,
    responses=REVIEW_RESPONSES,
    summary="Approve or reject a visit report",
    description="Approving a report with a commitment date moves its asset to JANJI_BAYAR.",
)
async def review_visit(
    report_id: str,
    decision: VisitDecision,
    user: User = Depends(get_current_user),
    validation_service: ValidationService = Depends(get_validation_service),
) -> VisitReportEnvelope:
    try:
        report = await validation_service.review_visit(
            report_id, user, decision.status, decision.rejection_reason
        )
        return VisitReportEnvelope(data=validation_service.visit_to_response(report))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error reviewing visit", report_id=report_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/payments",
    response_model=PaymentReportEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Submit payment evidence",
)
async def submit_payment(
    data: PaymentReportCreate,
    user: User = Depends(require_collector),
    validation_service: ValidationService = Depends(get_validation_service),
) -> PaymentReportEnvelope:
    try:
        report = await validation_service.submit_payment(user, data)
        return PaymentReportEnvelope(data=validation_service.payment_to_response(report))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error submitting payment", asset_id=data.asset_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/payments",
    response_model=PaymentReportListResponse,
    responses=COMMON_RESPONSES,
    summary="List payment reports",
)
async def list_payments(
    report_status: Optional[PaymentMatchStatus] = Query(default=None, alias="status"),
    user: User = Depends(get_current_user),
    validation_service: ValidationService = Depends(get_validation_service),
) -> PaymentReportListResponse:
    try:
        reports = await validation_service.list_payments(user, report_status)
        return PaymentReportListResponse(
            data=[validation_service.payment_to_response(r) for r in reports],
            count=len(reports),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing payments", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.patch(
    "/payments/{report_id}",
    response_model=PaymentReportEnvelope,
    responses=REVIEW_RESPONSES,
    summary="Verify or reject payment evidence",
    description="MATCHED reduces the asset's arrears by the paid amount in the same transaction.",
)
async def review_payment(
    report_id: str,
    decision: PaymentDecision,
    user: User = Depends(get_current_user),
    validation_service: ValidationService = Depends(get_validation_service),
) -> PaymentReportEnvelope:
    try:
        report = await validation_service.review_payment(
            report_id, user, decision.status, decision.rejection_reason
        )
        return PaymentReportEnvelope(data=validation_service.payment_to_response(report))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error reviewing payment", report_id=report_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
