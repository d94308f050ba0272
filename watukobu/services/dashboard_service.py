"""
Dashboard service: aggregated figures for admin, management and collector views.

Everything here is read-only. Money is summed from total_arrears and from
MATCHED payment reports; percentages come from utils.formatting.percentage.
"""
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from watukobu.core.config import get_settings
from watukobu.core.exceptions import ValidationError
from watukobu.core.logging import get_logger
from watukobu.models.database import Asset, PaymentReport, User, VisitReport
from watukobu.models.enums import (
    AssetStatus, PaymentMatchStatus, Role, SpkStatus, ValidationStatus,
)
from watukobu.schemas.asset import AssetResponse
from watukobu.schemas.dashboard import (
    AdminDashboard, CollectorDashboard, CollectorHistory, CollectorPerformance,
    CollectorTask, CompositionSlice, HistoryItem, HistorySummary, ManagementOverview,
    StatusBreakdown,
)
from watukobu.services.validation_service import ValidationService
from watukobu.utils.formatting import format_date_medium_id, format_rupiah, percentage

logger = get_logger(__name__)

TOP_ASSET_COUNT = 5
TOP_CREDIT_TYPES = 5
UNKNOWN_CREDIT_TYPE = "Unknown"
OTHERS_CREDIT_TYPE = "Others"
ONTRACK_RATIO = 0.7

QUICK_FILTERS = {
    "macet": lambda a: a.spk_status == SpkStatus.AKTIF.value and (a.total_arrears or 0.0) > 5_000_000,
    "janji_bayar": lambda a: a.spk_status == SpkStatus.AKTIF.value and (a.total_arrears or 0.0) > 1_000_000,
    "lancar": lambda a: a.spk_status == SpkStatus.PASIF.value,
}


def month_bounds(day: date) -> Tuple[datetime, datetime]:
    """Start of the month containing day and start of the following month."""
    start = datetime(day.year, day.month, 1)
    if day.month == 12:
        end = datetime(day.year + 1, 1, 1)
    else:
        end = datetime(day.year, day.month + 1, 1)
    return start, end


def parse_month(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM month filter."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        raise ValidationError("Invalid month. Use YYYY-MM", field="month", value=value)


def visit_status(today_visits: int, target: int) -> str:
    if today_visits >= target:
        return "achieved"
    if today_visits >= target * ONTRACK_RATIO:
        return "ontrack"
    return "behind"


def portfolio_composition(assets: List[Asset]) -> List[CompositionSlice]:
    """
    Exposure by credit type, largest first.

    The five largest types are listed individually; anything left is folded
    into an Others slice when it carries a positive exposure.
    """
    exposure: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for asset in assets:
        credit_type = (asset.credit_type or "").strip() or UNKNOWN_CREDIT_TYPE
        exposure[credit_type] += asset.total_arrears or 0.0
        counts[credit_type] += 1

    total = sum(exposure.values())
    ranked = sorted(exposure.items(), key=lambda item: (-item[1], item[0]))
    slices = [
        CompositionSlice(
            credit_type=name,
            exposure=value,
            count=counts[name],
            percentage=percentage(value, total),
        )
        for name, value in ranked[:TOP_CREDIT_TYPES]
    ]

    rest = ranked[TOP_CREDIT_TYPES:]
    rest_value = sum(value for _, value in rest)
    if rest_value > 0:
        slices.append(
            CompositionSlice(
                credit_type=OTHERS_CREDIT_TYPE,
                exposure=rest_value,
                count=sum(counts[name] for name, _ in rest),
                percentage=percentage(rest_value, total),
            )
        )
    return slices


class DashboardService:
    """Service computing dashboard figures from the registry and evidence tables."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = get_settings()

    def _matched_total(self, start: datetime, end: datetime, collector_id: Optional[str] = None) -> float:
        query = self.db.query(func.coalesce(func.sum(PaymentReport.paid_amount), 0.0)).filter(
            PaymentReport.status == PaymentMatchStatus.MATCHED.value,
            PaymentReport.submitted_at >= start,
            PaymentReport.submitted_at < end,
        )
        if collector_id:
            query = query.filter(PaymentReport.collector_id == collector_id)
        return float(query.scalar() or 0.0)

    async def admin_dashboard(self) -> AdminDashboard:
        assets = self.db.query(Asset).order_by(Asset.total_arrears.desc(), Asset.loan_id).all()
        counts = await ValidationService(self.db).visit_counts()

        total_arrears = sum(a.total_arrears or 0.0 for a in assets)
        total_principal = sum(a.principal_balance or 0.0 for a in assets)

        return AdminDashboard(
            total_debtors=len(assets),
            total_arrears=total_arrears,
            total_arrears_display=format_rupiah(total_arrears, compact=True),
            total_principal=total_principal,
            total_principal_display=format_rupiah(total_principal, compact=True),
            spk_active=sum(1 for a in assets if a.spk_status == SpkStatus.AKTIF.value),
            spk_passive=sum(1 for a in assets if a.spk_status == SpkStatus.PASIF.value),
            unassigned=sum(1 for a in assets if a.collector_id is None),
            top_assets=[AssetResponse.model_validate(a) for a in assets[:TOP_ASSET_COUNT]],
            portfolio_composition=portfolio_composition(assets),
            pending_visits=counts.pending_visits,
            suspicious_visits=counts.suspicious_visits,
            pending_payments=counts.pending_payments,
        )

    async def collector_dashboard(self, collector: User, today: Optional[date] = None) -> CollectorDashboard:
        """
        Figures for the collector's home screen.

        Args:
            collector: The calling collector
            today: Reference day, defaults to the current UTC date
        """
        today = today or datetime.utcnow().date()
        day_start = datetime(today.year, today.month, today.day)
        month_start, month_end = month_bounds(today)

        assets = self.db.query(Asset).filter(Asset.collector_id == collector.id).all()
        visits = self.db.query(VisitReport).filter(VisitReport.collector_id == collector.id).all()

        today_visits = sum(
            1 for v in visits if day_start <= v.submitted_at < day_start + timedelta(days=1)
        )
        visited_ids = sorted({v.asset_id for v in visits})
        pending_ids = sorted({v.asset_id for v in visits if v.status == ValidationStatus.PENDING.value})
        janji_ids = sorted(a.id for a in assets if a.status == AssetStatus.JANJI_BAYAR.value)

        collected = self._matched_total(month_start, month_end, collector.id)
        target = self.settings.monthly_collection_target
        daily_target = self.settings.daily_visit_target

        return CollectorDashboard(
            today_visits=today_visits,
            visited_asset_ids=visited_ids,
            janji_bayar_asset_ids=janji_ids,
            pending_visit_asset_ids=pending_ids,
            collected_amount=collected,
            promise_to_pay_count=len(janji_ids),
            assigned_count=len(assets),
            total_portfolio=sum(a.total_arrears or 0.0 for a in assets),
            monthly_target=target,
            collection_progress=percentage(collected, target, cap=100.0),
            daily_visit_target=daily_target,
            daily_visit_status=visit_status(today_visits, daily_target),
        )

    async def collector_tasks(
        self,
        collector: User,
        search: Optional[str] = None,
        quick_filter: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[CollectorTask]:
        """
        The collector's cases in working order.

        Promise-to-pay-today cases come first, then cases never visited,
        then everything else by arrears descending.
        """
        today = today or datetime.utcnow().date()
        if quick_filter and quick_filter not in QUICK_FILTERS:
            raise ValidationError(
                f"Unknown filter. Use one of: {', '.join(QUICK_FILTERS)}",
                field="filter",
                value=quick_filter,
            )

        assets = self.db.query(Asset).filter(Asset.collector_id == collector.id).all()
        visits = self.db.query(VisitReport).filter(VisitReport.collector_id == collector.id).all()

        visited = {v.asset_id for v in visits}
        pending = {v.asset_id for v in visits if v.status == ValidationStatus.PENDING.value}
        promised_today = {
            v.asset_id for v in visits
            if v.status == ValidationStatus.APPROVED.value and v.commitment_date == today
        }

        if search:
            needle = search.strip().lower()
            assets = [
                a for a in assets
                if needle in (a.debtor_name or "").lower()
                or needle in (a.loan_id or "").lower()
                or needle in (a.collateral_address or "").lower()
            ]
        if quick_filter:
            assets = [a for a in assets if QUICK_FILTERS[quick_filter](a)]

        def promise_today(asset: Asset) -> bool:
            return asset.status == AssetStatus.JANJI_BAYAR.value and asset.id in promised_today

        assets.sort(
            key=lambda a: (
                not promise_today(a),
                a.id in visited,
                -(a.total_arrears or 0.0),
                a.loan_id,
            )
        )
        return [
            CollectorTask(
                asset=AssetResponse.model_validate(a),
                promise_today=promise_today(a),
                visited=a.id in visited,
                pending_validation=a.id in pending,
            )
            for a in assets
        ]

    async def collector_history(self, collector: User, month: Optional[str] = None) -> CollectorHistory:
        """Visit and payment reports merged into one timeline, newest first."""
        month_day = parse_month(month)
        visit_query = self.db.query(VisitReport).filter(VisitReport.collector_id == collector.id)
        payment_query = self.db.query(PaymentReport).filter(PaymentReport.collector_id == collector.id)
        if month_day:
            start, end = month_bounds(month_day)
            visit_query = visit_query.filter(VisitReport.submitted_at >= start, VisitReport.submitted_at < end)
            payment_query = payment_query.filter(
                PaymentReport.submitted_at >= start, PaymentReport.submitted_at < end
            )

        items = []
        for v in visit_query.all():
            if v.commitment_date:
                summary = f"Janji bayar {format_date_medium_id(v.commitment_date)}"
            else:
                summary = v.problem_description or v.outcome
            items.append(
                HistoryItem(
                    id=v.id,
                    kind="visit",
                    asset_id=v.asset_id,
                    loan_id=v.asset.loan_id if v.asset else None,
                    debtor_name=v.asset.debtor_name if v.asset else None,
                    submitted_at=v.submitted_at,
                    status=v.status,
                    summary=summary,
                )
            )
        for p in payment_query.all():
            items.append(
                HistoryItem(
                    id=p.id,
                    kind="payment",
                    asset_id=p.asset_id,
                    loan_id=p.asset.loan_id if p.asset else None,
                    debtor_name=p.asset.debtor_name if p.asset else None,
                    submitted_at=p.submitted_at,
                    status=p.status,
                    summary=f"{p.payment_outcome} via {p.payment_method}",
                    amount=p.paid_amount,
                )
            )
        items.sort(key=lambda item: item.submitted_at, reverse=True)

        verified_statuses = (ValidationStatus.APPROVED.value, PaymentMatchStatus.MATCHED.value)
        summary = HistorySummary(
            verified=sum(1 for i in items if i.status in verified_statuses),
            pending=sum(1 for i in items if i.status == ValidationStatus.PENDING.value),
            rejected=sum(1 for i in items if i.status == ValidationStatus.REJECTED.value),
        )
        return CollectorHistory(items=items, summary=summary)

    async def management_overview(self, today: Optional[date] = None) -> ManagementOverview:
        today = today or datetime.utcnow().date()
        month_start, month_end = month_bounds(today)

        assets = self.db.query(Asset).all()
        total_arrears = sum(a.total_arrears or 0.0 for a in assets)
        collected = self._matched_total(month_start, month_end)
        collection_rate = percentage(collected, total_arrears + collected)
        rate_target = self.settings.collection_rate_target
        monthly_target = self.settings.monthly_collection_target

        collectors = (
            self.db.query(User)
            .filter(User.role == Role.COLLECTOR.value, User.is_active.is_(True))
            .order_by(User.name)
            .all()
        )
        team = []
        for collector in collectors:
            owned = [a for a in assets if a.collector_id == collector.id]
            month_visits = (
                self.db.query(VisitReport)
                .filter(
                    VisitReport.collector_id == collector.id,
                    VisitReport.submitted_at >= month_start,
                    VisitReport.submitted_at < month_end,
                )
                .all()
            )
            member_collected = self._matched_total(month_start, month_end, collector.id)
            team.append(
                CollectorPerformance(
                    collector_id=collector.id,
                    name=collector.name,
                    area=collector.area,
                    assigned_cases=len(owned),
                    total_arrears=sum(a.total_arrears or 0.0 for a in owned),
                    visits_this_month=len(month_visits),
                    approved_visits=sum(
                        1 for v in month_visits if v.status == ValidationStatus.APPROVED.value
                    ),
                    collected_this_month=member_collected,
                    monthly_target=monthly_target,
                    achievement_percent=percentage(member_collected, monthly_target),
                )
            )

        logger.debug("Management overview computed", collectors=len(team), assets=len(assets))
        return ManagementOverview(
            total_assets=len(assets),
            total_arrears=total_arrears,
            total_principal=sum(a.principal_balance or 0.0 for a in assets),
            status_breakdown=StatusBreakdown(
                lancar=sum(1 for a in assets if a.status == AssetStatus.LANCAR.value),
                janji_bayar=sum(1 for a in assets if a.status == AssetStatus.JANJI_BAYAR.value),
                macet=sum(1 for a in assets if a.status == AssetStatus.MACET.value),
            ),
            collected_this_month=collected,
            collection_rate=collection_rate,
            collection_rate_target=rate_target,
            target_achievement=percentage(collection_rate, rate_target),
            team=team,
        )
