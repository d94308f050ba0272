"""
Assignment service: collector workload ranking and bulk case assignment.

The recommended collector is simply the one with the fewest cases; ties go
to the collector whose name sorts first.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from watukobu.core.config import get_settings
from watukobu.core.exceptions import DatabaseError, ValidationError
from watukobu.core.logging import get_logger, log_business_event
from watukobu.models.database import Asset, Assignment, User
from watukobu.models.enums import AssignmentStatus, Role
from watukobu.schemas.assignment import (
    AssignmentQueue, AssignmentResult, CollectorWorkload, QueueFilter, QueueStats,
)
from watukobu.schemas.asset import AssetResponse

logger = get_logger(__name__)


def load_level(load_percent: float) -> str:
    if load_percent < 50:
        return "normal"
    if load_percent < 80:
        return "busy"
    return "overloaded"


class AssignmentService:
    """Service for distributing cases across field collectors."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = get_settings()

    def _case_totals(self) -> Dict[str, tuple]:
        rows = (
            self.db.query(
                Asset.collector_id,
                func.count(Asset.id),
                func.coalesce(func.sum(Asset.total_arrears), 0.0),
            )
            .filter(Asset.collector_id.isnot(None))
            .group_by(Asset.collector_id)
            .all()
        )
        return {collector_id: (count, float(arrears)) for collector_id, count, arrears in rows}

    async def collector_workloads(self) -> List[CollectorWorkload]:
        """
        Rank active collectors by current case count, lightest first.

        Returns:
            Workloads with the first entry flagged as recommended
        """
        capacity = self.settings.max_cases_per_collector
        totals = self._case_totals()
        collectors = (
            self.db.query(User)
            .filter(User.role == Role.COLLECTOR.value, User.is_active.is_(True))
            .all()
        )

        workloads = []
        for collector in collectors:
            count, arrears = totals.get(collector.id, (0, 0.0))
            percent = round(min(count / capacity * 100, 100.0), 1)
            workloads.append(
                CollectorWorkload(
                    collector_id=collector.id,
                    name=collector.name,
                    employee_id=collector.employee_id,
                    area=collector.area,
                    case_count=count,
                    total_arrears=arrears,
                    capacity=capacity,
                    load_percent=percent,
                    load_level=load_level(percent),
                )
            )

        workloads.sort(key=lambda w: (w.case_count, w.name))
        if workloads:
            workloads[0].recommended = True
        return workloads

    async def recommend_collector(self) -> Optional[CollectorWorkload]:
        workloads = await self.collector_workloads()
        return workloads[0] if workloads else None

    async def assign_assets(
        self,
        asset_ids: List[str],
        collector_id: Optional[str],
        assigned_by: Optional[str] = None,
    ) -> AssignmentResult:
        """
        Write the collector onto every listed asset and record the assignment.

        Args:
            asset_ids: Assets to assign; unknown ids are ignored
            collector_id: Target collector
            assigned_by: User performing the assignment

        Raises:
            ValidationError: When the list is empty or the collector is not an active collector
        """
        if not asset_ids:
            raise ValidationError("asset_ids array is required", field="asset_ids")
        if not collector_id:
            raise ValidationError("collector_id is required", field="collector_id")

        collector = self.db.get(User, collector_id)
        if collector is None or collector.role != Role.COLLECTOR.value or not collector.is_active:
            raise ValidationError("Invalid collector", field="collector_id", value=collector_id)

        now = datetime.utcnow()
        due_date = now + timedelta(days=self.settings.assignment_due_days)
        assets = self.db.query(Asset).filter(Asset.id.in_(list(set(asset_ids)))).all()

        existing = {
            a.asset_id: a
            for a in self.db.query(Assignment).filter(
                Assignment.collector_id == collector_id,
                Assignment.asset_id.in_([asset.id for asset in assets]),
            )
        }

        for asset in assets:
            if asset.collector_id and asset.collector_id != collector_id:
                (
                    self.db.query(Assignment)
                    .filter(
                        Assignment.asset_id == asset.id,
                        Assignment.collector_id == asset.collector_id,
                        Assignment.status == AssignmentStatus.ACTIVE.value,
                    )
                    .update({Assignment.status: AssignmentStatus.CANCELLED.value}, synchronize_session=False)
                )
            asset.collector_id = collector_id
            asset.updated_at = now

            record = existing.get(asset.id)
            if record is None:
                self.db.add(
                    Assignment(
                        asset_id=asset.id,
                        collector_id=collector_id,
                        assigned_by=assigned_by,
                        status=AssignmentStatus.ACTIVE.value,
                        due_date=due_date,
                        assigned_at=now,
                    )
                )
            elif record.status == AssignmentStatus.CANCELLED.value:
                record.status = AssignmentStatus.ACTIVE.value
                record.assigned_by = assigned_by
                record.assigned_at = now
                record.due_date = due_date

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Assignment failed", collector_id=collector_id, error=str(e))
            raise DatabaseError(str(e), operation="assign_assets", collector_id=collector_id)

        log_business_event(
            "assets_assigned",
            collector_id=collector_id,
            assigned_count=len(assets),
            requested_count=len(asset_ids),
            assigned_by=assigned_by,
        )
        return AssignmentResult(
            assigned_count=len(assets),
            collector_id=collector.id,
            collector_name=collector.name,
        )

    async def auto_assign(self, asset_ids: List[str], assigned_by: Optional[str] = None) -> AssignmentResult:
        """Assign to the collector with the lowest current workload."""
        recommended = await self.recommend_collector()
        if recommended is None:
            raise ValidationError("No active collectors available", field="collector_id")
        logger.info(
            "Auto-assigning to recommended collector",
            collector_id=recommended.collector_id,
            case_count=recommended.case_count,
        )
        return await self.assign_assets(asset_ids, recommended.collector_id, assigned_by)

    async def assignment_queue(self, filters: Optional[QueueFilter] = None) -> AssignmentQueue:
        """Unassigned cases, largest arrears first, with queue statistics."""
        filters = filters or QueueFilter()
        unassigned = (
            self.db.query(Asset)
            .filter(Asset.collector_id.is_(None))
            .order_by(Asset.total_arrears.desc(), Asset.loan_id)
            .all()
        )

        threshold = self.settings.priority_arrears_threshold
        stats = QueueStats(
            unassigned_count=len(unassigned),
            unassigned_value=sum(a.total_arrears or 0.0 for a in unassigned),
            priority_count=sum(1 for a in unassigned if (a.total_arrears or 0.0) > threshold),
        )

        filtered = [
            a for a in unassigned
            if (not filters.branch or a.branch == filters.branch)
            and (not filters.spk_status or a.spk_status == filters.spk_status.value)
            and (filters.min_arrears is None or (a.total_arrears or 0.0) >= filters.min_arrears)
        ]

        branches = sorted(
            {name for (name,) in self.db.query(Asset.branch).filter(Asset.branch.isnot(None)).distinct() if name}
        )

        return AssignmentQueue(
            assets=[AssetResponse.model_validate(a) for a in filtered],
            stats=stats,
            branches=branches,
        )
