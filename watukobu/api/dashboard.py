"""
Dashboard API endpoints for the admin, management and collector views.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from watukobu.core.dependencies import get_dashboard_service
from watukobu.core.logging import get_logger
from watukobu.core.security import require_admin, require_collector, require_management
from watukobu.models.database import User
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse
from watukobu.schemas.dashboard import (
    AdminDashboardResponse, CollectorDashboardResponse, CollectorHistoryResponse,
    CollectorTaskListResponse, ManagementOverviewResponse,
)
from watukobu.services.dashboard_service import DashboardService

logger = get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}


@router.get(
    "/admin",
    response_model=AdminDashboardResponse,
    responses=COMMON_RESPONSES,
    summary="Admin dashboard",
    description="Portfolio KPIs, top debtors, credit type composition and validation backlog.",
)
async def admin_dashboard(
    user: User = Depends(require_admin),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> AdminDashboardResponse:
    try:
        return AdminDashboardResponse(data=await dashboard_service.admin_dashboard())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building admin dashboard", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/management",
    response_model=ManagementOverviewResponse,
    responses=COMMON_RESPONSES,
    summary="Management overview",
)
async def management_overview(
    user: User = Depends(require_management),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> ManagementOverviewResponse:
    try:
        return ManagementOverviewResponse(data=await dashboard_service.management_overview())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building management overview", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/collector",
    response_model=CollectorDashboardResponse,
    responses=COMMON_RESPONSES,
    summary="Collector home figures",
)
async def collector_dashboard(
    user: User = Depends(require_collector),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CollectorDashboardResponse:
    try:
        return CollectorDashboardResponse(data=await dashboard_service.collector_dashboard(user))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building collector dashboard", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/collector/tasks",
    response_model=CollectorTaskListResponse,
    responses={400: {"model": ErrorResponse, "description": "Unknown quick filter"}, **COMMON_RESPONSES},
    summary="Collector task list",
    description="Promise-to-pay-today first, then unvisited cases, then largest arrears.",
)
async def collector_tasks(
    search: Optional[str] = None,
    quick_filter: Optional[str] = Query(default=None, alias="filter"),
    user: User = Depends(require_collector),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CollectorTaskListResponse:
    try:
        tasks = await dashboard_service.collector_tasks(user, search=search, quick_filter=quick_filter)
        return CollectorTaskListResponse(data=tasks, count=len(tasks))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building collector tasks", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/collector/history",
    response_model=CollectorHistoryResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid month"}, **COMMON_RESPONSES},
    summary="Collector activity timeline",
)
async def collector_history(
    month: Optional[str] = Query(default=None, description="YYYY-MM"),
    user: User = Depends(require_collector),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> CollectorHistoryResponse:
    try:
        return CollectorHistoryResponse(data=await dashboard_service.collector_history(user, month))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error building collector history", month=month, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
