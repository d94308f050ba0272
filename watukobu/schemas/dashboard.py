"""
Response schemas for the admin, management and collector dashboards.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from watukobu.schemas.asset import AssetResponse


class CompositionSlice(BaseModel):
    """Share of the portfolio held by one credit type."""

    credit_type: str
    exposure: float
    count: int
    percentage: float


class AdminDashboard(BaseModel):
    total_debtors: int
    total_arrears: float
    total_arrears_display: str
    total_principal: float
    total_principal_display: str
    spk_active: int
    spk_passive: int
    unassigned: int
    top_assets: List[AssetResponse]
    portfolio_composition: List[CompositionSlice]
    pending_visits: int
    suspicious_visits: int
    pending_payments: int


class AdminDashboardResponse(BaseModel):
    success: bool = True
    data: AdminDashboard


class CollectorDashboard(BaseModel):
    today_visits: int
    visited_asset_ids: List[str]
    janji_bayar_asset_ids: List[str]
    pending_visit_asset_ids: List[str]
    collected_amount: float
    promise_to_pay_count: int
    assigned_count: int
    total_portfolio: float
    monthly_target: float
    collection_progress: float
    daily_visit_target: int
    daily_visit_status: str = Field(..., description="achieved, ontrack or behind")


class CollectorDashboardResponse(BaseModel):
    success: bool = True
    data: CollectorDashboard


class CollectorTask(BaseModel):
    asset: AssetResponse
    promise_today: bool
    visited: bool
    pending_validation: bool


class CollectorTaskListResponse(BaseModel):
    success: bool = True
    data: List[CollectorTask]
    count: int


class HistoryItem(BaseModel):
    """One entry in the collector's activity timeline."""

    id: str
    kind: str = Field(..., description="visit or payment")
    asset_id: str
    loan_id: Optional[str] = None
    debtor_name: Optional[str] = None
    submitted_at: datetime
    status: str
    summary: str
    amount: Optional[float] = None


class HistorySummary(BaseModel):
    verified: int
    pending: int
    rejected: int


class CollectorHistory(BaseModel):
    items: List[HistoryItem]
    summary: HistorySummary


class CollectorHistoryResponse(BaseModel):
    success: bool = True
    data: CollectorHistory


class StatusBreakdown(BaseModel):
    lancar: int
    janji_bayar: int
    macet: int


class CollectorPerformance(BaseModel):
    collector_id: str
    name: str
    area: Optional[str] = None
    assigned_cases: int
    total_arrears: float
    visits_this_month: int
    approved_visits: int
    collected_this_month: float
    monthly_target: float
    achievement_percent: float


class ManagementOverview(BaseModel):
    total_assets: int
    total_arrears: float
    total_principal: float
    status_breakdown: StatusBreakdown
    collected_this_month: float
    collection_rate: float
    collection_rate_target: float
    target_achievement: float
    team: List[CollectorPerformance]


class ManagementOverviewResponse(BaseModel):
    success: bool = True
    data: ManagementOverview
