"""
Validation service for field evidence: visit reports and payment reports.

Collectors submit evidence; administrators approve or reject it. Heuristic
flags (GPS present, photo timestamps close to submission) are attached to
every visit report so reviewers can spot suspicious submissions.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from watukobu.core.config import get_settings
from watukobu.core.exceptions import (
    BusinessRuleError, DatabaseError, NotFoundError, PermissionDeniedError, ValidationError,
)
from watukobu.core.logging import get_logger, log_business_event
from watukobu.models.database import Asset, PaymentReport, User, VisitReport
from watukobu.models.enums import (
    AssetStatus, PaymentMatchStatus, Role, ValidationStatus, VisitOutcome,
)
from watukobu.services.asset_service import AssetService
from watukobu.schemas.report import (
    EvidenceFlagsSchema, PaymentReportCreate, PaymentReportResponse,
    ValidationCounts, VisitReportCreate, VisitReportResponse,
)
from watukobu.utils import evidence_checks

logger = get_logger(__name__)

REVIEWER_ROLES = (Role.ADMIN.value, Role.MANAGER.value)


class ValidationService:
    """Service for visit and payment evidence intake and review."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.tolerance = timedelta(minutes=get_settings().photo_timestamp_tolerance_minutes)

    def _require_reviewer(self, reviewer: User) -> None:
        if reviewer.role not in REVIEWER_ROLES:
            raise PermissionDeniedError("Only administrators can review evidence", role=reviewer.role)

    def _get_asset(self, asset_id: str) -> Asset:
        asset = self.db.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    def _get_own_asset(self, asset_id: str, collector: User) -> Asset:
        asset = self._get_asset(asset_id)
        if asset.collector_id != collector.id:
            raise PermissionDeniedError("Asset is not assigned to you", role=collector.role)
        return asset

    def _commit(self, operation: str, **context) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Evidence write failed", operation=operation, error=str(e), **context)
            raise DatabaseError(str(e), operation=operation, **context)

    # Presentation

    def visit_to_response(self, report: VisitReport) -> VisitReportResponse:
        flags = evidence_checks.evaluate(report, self.tolerance)
        response = VisitReportResponse.model_validate(report)
        response.loan_id = report.asset.loan_id if report.asset else None
        response.debtor_name = report.asset.debtor_name if report.asset else None
        response.collector_name = report.collector.name if report.collector else None
        response.flags = EvidenceFlagsSchema(
            has_coordinates=flags.has_coordinates,
            has_required_photos=flags.has_required_photos,
            all_photos_valid=flags.all_photos_valid,
            is_suspicious=flags.is_suspicious,
        )
        return response

    def payment_to_response(self, report: PaymentReport) -> PaymentReportResponse:
        response = PaymentReportResponse.model_validate(report)
        response.loan_id = report.asset.loan_id if report.asset else None
        response.debtor_name = report.asset.debtor_name if report.asset else None
        response.collector_name = report.collector.name if report.collector else None
        return response

    # Visit reports

    async def submit_visit(self, collector: User, data: VisitReportCreate) -> VisitReport:
        """
        Record a field visit as PENDING.

        Only the collector the asset is assigned to may report on it. The
        outcome defaults to BERTEMU when a photo with the debtor is attached.
        Submitting never changes the asset status; only approval does.
        """
        self._get_own_asset(data.asset_id, collector)
        outcome = data.outcome
        if outcome is None:
            outcome = VisitOutcome.BERTEMU if data.photo_with_debtor else VisitOutcome.TIDAK_BERTEMU

        values = data.model_dump(exclude={"outcome", "facilities"})
        report = VisitReport(
            **values,
            outcome=outcome.value,
            facilities=data.facilities.model_dump() if data.facilities else None,
            collector_id=collector.id,
            submitted_at=datetime.utcnow(),
            status=ValidationStatus.PENDING.value,
        )
        for enum_field in ("collateral_status", "collateral_condition"):
            value = getattr(report, enum_field)
            if value is not None and hasattr(value, "value"):
                setattr(report, enum_field, value.value)

        self.db.add(report)
        self._commit("submit_visit", asset_id=data.asset_id)
        self.db.refresh(report)

        flags = evidence_checks.evaluate(report, self.tolerance)
        log_business_event(
            "visit_submitted",
            report_id=report.id,
            asset_id=report.asset_id,
            collector_id=collector.id,
            outcome=report.outcome,
            suspicious=flags.is_suspicious,
        )
        if flags.is_suspicious:
            logger.warning("Visit evidence failed timestamp checks", report_id=report.id)
        return report

    async def list_visits(self, viewer: User, status: Optional[ValidationStatus] = None,
                          asset_id: Optional[str] = None) -> List[VisitReport]:
        """Newest first; collectors only see their own reports."""
        query = self.db.query(VisitReport)
        if viewer.role == Role.COLLECTOR.value:
            query = query.filter(VisitReport.collector_id == viewer.id)
        if status:
            query = query.filter(VisitReport.status == status.value)
        if asset_id:
            query = query.filter(VisitReport.asset_id == asset_id)
        return query.order_by(VisitReport.submitted_at.desc()).all()

    async def get_visit(self, report_id: str) -> VisitReport:
        report = self.db.get(VisitReport, report_id)
        if report is None:
            raise NotFoundError("Visit report", report_id)
        return report

    async def review_visit(self, report_id: str, reviewer: User, status: str,
                           rejection_reason: Optional[str] = None) -> VisitReport:
        """Dispatch an APPROVED/REJECTED decision."""
        self._require_reviewer(reviewer)
        normalized = (status or "").upper()
        if normalized == ValidationStatus.APPROVED.value:
            return await self.approve_visit(report_id, reviewer)
        if normalized == ValidationStatus.REJECTED.value:
            return await self.reject_visit(report_id, reviewer, rejection_reason)
        raise ValidationError("Invalid status. Must be APPROVED or REJECTED", field="status", value=status)

    async def approve_visit(self, report_id: str, reviewer: User) -> VisitReport:
        """Approve a visit; a report with a commitment date moves the asset to JANJI_BAYAR."""
        self._require_reviewer(reviewer)
        report = await self.get_visit(report_id)
        self._ensure_pending(report.status, ValidationStatus.PENDING.value, report_id)

        report.status = ValidationStatus.APPROVED.value
        report.processed_at = datetime.utcnow()
        report.processed_by = reviewer.id
        report.rejection_reason = None

        if report.commitment_date is not None:
            report.asset.status = AssetStatus.JANJI_BAYAR.value
            report.asset.updated_at = report.processed_at

        self._commit("approve_visit", report_id=report_id)
        self.db.refresh(report)
        log_business_event(
            "visit_approved",
            report_id=report.id,
            asset_id=report.asset_id,
            reviewer_id=reviewer.id,
            promise_to_pay=report.commitment_date is not None,
        )
        return report

    async def reject_visit(self, report_id: str, reviewer: User,
                           reason: Optional[str] = None) -> VisitReport:
        self._require_reviewer(reviewer)
        report = await self.get_visit(report_id)
        self._ensure_pending(report.status, ValidationStatus.PENDING.value, report_id)

        report.status = ValidationStatus.REJECTED.value
        report.rejection_reason = reason
        report.processed_at = datetime.utcnow()
        report.processed_by = reviewer.id

        self._commit("reject_visit", report_id=report_id)
        self.db.refresh(report)
        log_business_event("visit_rejected", report_id=report.id, reviewer_id=reviewer.id, reason=reason)
        return report

    def _ensure_pending(self, current: str, pending: str, report_id: str) -> None:
        if current != pending:
            raise BusinessRuleError(
                f"Report already processed with status {current}",
                rule_name="already_processed",
                entity_id=report_id,
            )

    async def visit_counts(self) -> ValidationCounts:
        pending = (
            self.db.query(VisitReport)
            .filter(VisitReport.status == ValidationStatus.PENDING.value)
            .all()
        )
        suspicious = sum(
            1 for report in pending if not evidence_checks.all_photos_valid(report, self.tolerance)
        )
        pending_payments = (
            self.db.query(PaymentReport)
            .filter(PaymentReport.status == PaymentMatchStatus.PENDING.value)
            .count()
        )
        return ValidationCounts(
            pending_visits=len(pending),
            suspicious_visits=suspicious,
            pending_payments=pending_payments,
        )

    # Payment reports

    async def submit_payment(self, collector: User, data: PaymentReportCreate) -> PaymentReport:
        self._get_own_asset(data.asset_id, collector)
        report = PaymentReport(
            asset_id=data.asset_id,
            collector_id=collector.id,
            submitted_at=datetime.utcnow(),
            payment_method=data.payment_method.value,
            payment_outcome=data.payment_outcome.value,
            paid_amount=data.paid_amount,
            promise_amount=data.promise_amount,
            evidence_photo=data.evidence_photo,
            new_promise_date=data.new_promise_date,
            failure_reason=data.failure_reason,
            status=PaymentMatchStatus.PENDING.value,
        )
        self.db.add(report)
        self._commit("submit_payment", asset_id=data.asset_id)
        self.db.refresh(report)
        log_business_event(
            "payment_submitted",
            report_id=report.id,
            asset_id=report.asset_id,
            collector_id=collector.id,
            paid_amount=report.paid_amount,
        )
        return report

    async def list_payments(self, viewer: User,
                            status: Optional[PaymentMatchStatus] = None) -> List[PaymentReport]:
        query = self.db.query(PaymentReport)
        if viewer.role == Role.COLLECTOR.value:
            query = query.filter(PaymentReport.collector_id == viewer.id)
        if status:
            query = query.filter(PaymentReport.status == status.value)
        return query.order_by(PaymentReport.submitted_at.desc()).all()

    async def get_payment(self, report_id: str) -> PaymentReport:
        report = self.db.get(PaymentReport, report_id)
        if report is None:
            raise NotFoundError("Payment report", report_id)
        return report

    async def review_payment(self, report_id: str, reviewer: User, status: str,
                             rejection_reason: Optional[str] = None) -> PaymentReport:
        self._require_reviewer(reviewer)
        normalized = (status or "").upper()
        if normalized == PaymentMatchStatus.MATCHED.value:
            return await self.verify_payment(report_id, reviewer)
        if normalized == PaymentMatchStatus.REJECTED.value:
            return await self.reject_payment(report_id, reviewer, rejection_reason)
        raise ValidationError("Invalid status. Must be MATCHED or REJECTED", field="status", value=status)

    async def verify_payment(self, report_id: str, reviewer: User) -> PaymentReport:
        """Match a payment against the bank statement and reduce the asset's arrears."""
        self._require_reviewer(reviewer)
        report = await self.get_payment(report_id)
        self._ensure_pending(report.status, PaymentMatchStatus.PENDING.value, report_id)

        now = datetime.utcnow()
        report.status = PaymentMatchStatus.MATCHED.value
        report.processed_at = now
        report.processed_by = reviewer.id

        asset = await AssetService(self.db).apply_payment(report.asset.loan_id, report.paid_amount)

        self._commit("verify_payment", report_id=report_id)
        self.db.refresh(report)
        log_business_event(
            "payment_matched",
            report_id=report.id,
            asset_id=asset.id,
            paid_amount=report.paid_amount,
            remaining_arrears=asset.total_arrears,
        )
        return report

    async def reject_payment(self, report_id: str, reviewer: User,
                             reason: Optional[str] = None) -> PaymentReport:
        self._require_reviewer(reviewer)
        report = await self.get_payment(report_id)
        self._ensure_pending(report.status, PaymentMatchStatus.PENDING.value, report_id)

        report.status = PaymentMatchStatus.REJECTED.value
        report.rejection_reason = reason
        report.processed_at = datetime.utcnow()
        report.processed_by = reviewer.id

        self._commit("reject_payment", report_id=report_id)
        self.db.refresh(report)
        log_business_event("payment_rejected", report_id=report.id, reviewer_id=reviewer.id, reason=reason)
        return report

    async def payment_pending_count(self) -> int:
        return (
            self.db.query(PaymentReport)
            .filter(PaymentReport.status == PaymentMatchStatus.PENDING.value)
            .count()
        )
