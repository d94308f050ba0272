"""
Asset registry service: CRUD, bulk import and balance updates for loan cases.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from watukobu.core.exceptions import (
    ConflictError, DatabaseError, ImportRowError, NotFoundError, ValidationError,
)
from watukobu.core.logging import get_logger, log_business_event
from watukobu.models.database import Asset, Assignment, Branch
from watukobu.models.enums import AssetStatus, AssignmentStatus, SpkStatus
from watukobu.schemas.asset import AMOUNT_FIELDS, AssetCreate, AssetFilter, AssetStats, AssetUpdate
from watukobu.utils.bank_import import parse_bank_csv
from watukobu.utils.formatting import sanitize_collateral_address

logger = get_logger(__name__)

MAX_REPORTED_IMPORT_ERRORS = 5


class AssetService:
    """Service for the loan case registry."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _commit(self, operation: str, **context) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Asset registry write failed", operation=operation, error=str(e), **context)
            raise DatabaseError(str(e), operation=operation, **context)

    # Queries

    def _apply_filter(self, query, filters: AssetFilter):
        if filters.collector_id:
            query = query.filter(Asset.collector_id == filters.collector_id)
        if filters.unassigned:
            query = query.filter(Asset.collector_id.is_(None))
        if filters.branch:
            query = query.filter(Asset.branch == filters.branch)
        if filters.spk_status:
            query = query.filter(Asset.spk_status == filters.spk_status.value)
        if filters.status:
            query = query.filter(Asset.status == filters.status.value)
        if filters.min_arrears is not None:
            query = query.filter(Asset.total_arrears >= filters.min_arrears)
        if filters.search:
            pattern = f"%{filters.search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(Asset.debtor_name).like(pattern),
                    func.lower(Asset.loan_id).like(pattern),
                    func.lower(Asset.collateral_address).like(pattern),
                    func.lower(Asset.identity_address).like(pattern),
                    func.lower(Asset.credit_type).like(pattern),
                )
            )
        return query

    async def list_assets(self, filters: Optional[AssetFilter] = None) -> List[Asset]:
        """
        List assets, largest arrears first.

        Args:
            filters: Optional collector, branch, status, arrears and text filters

        Returns:
            Matching assets
        """
        filters = filters or AssetFilter()
        query = self._apply_filter(self.db.query(Asset), filters)
        query = query.order_by(Asset.total_arrears.desc(), Asset.loan_id)
        if filters.offset:
            query = query.offset(filters.offset)
        if filters.limit:
            query = query.limit(filters.limit)
        return query.all()

    async def get_asset(self, asset_id: str) -> Asset:
        asset = self.db.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("Asset", asset_id)
        return asset

    async def get_by_loan_id(self, loan_id: str) -> Optional[Asset]:
        return self.db.query(Asset).filter(Asset.loan_id == loan_id).first()

    async def asset_stats(self) -> AssetStats:
        total, total_arrears = self.db.query(
            func.count(Asset.id), func.coalesce(func.sum(Asset.total_arrears), 0.0)
        ).one()
        active = self.db.query(func.count(Asset.id)).filter(
            Asset.spk_status == SpkStatus.AKTIF.value
        ).scalar()
        passive = self.db.query(func.count(Asset.id)).filter(
            Asset.spk_status == SpkStatus.PASIF.value
        ).scalar()
        unassigned = self.db.query(func.count(Asset.id)).filter(
            Asset.collector_id.is_(None)
        ).scalar()
        return AssetStats(
            total=total,
            total_arrears=float(total_arrears),
            active_count=active,
            passive_count=passive,
            unassigned_count=unassigned,
        )

    async def recent_assets(self, limit: int = 5) -> List[Asset]:
        return (
            self.db.query(Asset)
            .order_by(Asset.updated_at.desc(), Asset.created_at.desc())
            .limit(limit)
            .all()
        )

    # Writes

    def _find_or_create_branch(self, name: Optional[str], region: Optional[str]) -> Optional[Branch]:
        if not name:
            return None
        branch = self.db.query(Branch).filter(Branch.name == name).first()
        if branch is None:
            branch = Branch(name=name, region=region or "Unknown")
            self.db.add(branch)
            self.db.flush()
            logger.info("Branch created", branch=name, region=branch.region)
        return branch

    def _build_asset(self, data: AssetCreate) -> Asset:
        values = data.model_dump(exclude={"loan_id"})
        branch = self._find_or_create_branch(values.get("branch"), values.get("region"))

        for name in AMOUNT_FIELDS:
            values[name] = values.get(name) or 0.0
        values["debtor_name"] = (values.get("debtor_name") or "").strip() or "Unknown"
        values["spk_status"] = (values.get("spk_status") or SpkStatus.AKTIF).value
        values["status"] = (values.get("status") or AssetStatus.MACET).value
        values["collateral_address"] = sanitize_collateral_address(values.get("collateral_address"))
        values["branch_id"] = branch.id if branch else None

        return Asset(loan_id=str(data.loan_id).strip(), **values)

    async def create_asset(self, data: AssetCreate) -> Asset:
        """
        Create a single asset.

        Raises:
            ValidationError: When the loan id is missing
            ConflictError: When the loan id is already registered
        """
        if not data.loan_id or not str(data.loan_id).strip():
            raise ValidationError("Missing required field: loan_id", field="loan_id")
        if await self.get_by_loan_id(str(data.loan_id).strip()):
            raise ConflictError(f"Asset with loan id {data.loan_id} already exists", loan_id=data.loan_id)

        asset = self._build_asset(data)
        self.db.add(asset)
        self._commit("create_asset", loan_id=data.loan_id)
        self.db.refresh(asset)

        log_business_event("asset_created", asset_id=asset.id, loan_id=asset.loan_id)
        return asset

    async def update_asset(self, asset_id: str, data: AssetUpdate) -> Asset:
        """Write only the fields present in the update."""
        asset = await self.get_asset(asset_id)
        changes = data.model_dump(exclude_unset=True)

        if "loan_id" in changes:
            new_loan_id = (changes.pop("loan_id") or "").strip()
            if not new_loan_id:
                raise ValidationError("loan_id cannot be empty", field="loan_id")
            if new_loan_id != asset.loan_id and await self.get_by_loan_id(new_loan_id):
                raise ConflictError(f"Asset with loan id {new_loan_id} already exists", loan_id=new_loan_id)
            asset.loan_id = new_loan_id

        if "branch" in changes:
            branch = self._find_or_create_branch(changes["branch"], changes.get("region") or asset.region)
            asset.branch_id = branch.id if branch else None
        if "collateral_address" in changes:
            changes["collateral_address"] = sanitize_collateral_address(changes["collateral_address"])
        for enum_field in ("spk_status", "status"):
            if changes.get(enum_field) is not None:
                changes[enum_field] = changes[enum_field].value
        for name in AMOUNT_FIELDS:
            if name in changes and changes[name] is None:
                changes[name] = 0.0

        for key, value in changes.items():
            setattr(asset, key, value)
        asset.updated_at = datetime.utcnow()

        self._commit("update_asset", asset_id=asset_id)
        self.db.refresh(asset)
        logger.info("Asset updated", asset_id=asset.id, fields=sorted(changes.keys()))
        return asset

    async def delete_asset(self, asset_id: str) -> None:
        asset = await self.get_asset(asset_id)
        loan_id = asset.loan_id
        self.db.delete(asset)
        self._commit("delete_asset", asset_id=asset_id)
        log_business_event("asset_deleted", asset_id=asset_id, loan_id=loan_id)

    async def delete_assets(self, asset_ids: Iterable[str]) -> int:
        """Delete every listed asset that exists; returns how many were removed."""
        assets = self.db.query(Asset).filter(Asset.id.in_(list(asset_ids))).all()
        for asset in assets:
            self.db.delete(asset)
        self._commit("delete_assets", count=len(assets))
        log_business_event("assets_deleted", count=len(assets))
        return len(assets)

    async def unassign_asset(self, asset_id: str) -> Asset:
        """Return a case to the unassigned pool and cancel its active assignments."""
        asset = await self.get_asset(asset_id)
        previous = asset.collector_id
        asset.collector_id = None
        asset.updated_at = datetime.utcnow()
        (
            self.db.query(Assignment)
            .filter(
                Assignment.asset_id == asset_id,
                Assignment.status == AssignmentStatus.ACTIVE.value,
            )
            .update({Assignment.status: AssignmentStatus.CANCELLED.value}, synchronize_session=False)
        )
        self._commit("unassign_asset", asset_id=asset_id)
        self.db.refresh(asset)
        log_business_event("asset_unassigned", asset_id=asset_id, previous_collector_id=previous)
        return asset

    async def apply_payment(self, loan_id: str, amount: float) -> Asset:
        """
        Reduce outstanding arrears by a verified payment.

        Arrears never drop below zero. The caller owns the transaction.
        """
        asset = await self.get_by_loan_id(loan_id)
        if asset is None:
            raise NotFoundError("Asset", loan_id)
        asset.total_arrears = max(0.0, (asset.total_arrears or 0.0) - (amount or 0.0))
        asset.arrears_paid = (asset.arrears_paid or 0.0) + (amount or 0.0)
        asset.updated_at = datetime.utcnow()
        return asset

    # Bulk import

    async def import_assets(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Import many assets, skipping rows without a loan id and duplicates.

        Args:
            rows: Raw asset rows using any accepted field naming

        Returns:
            Counts of imported, skipped and failed rows with a summary message
        """
        if not rows:
            raise ValidationError("No assets provided", field="assets")

        imported = 0
        skipped = 0
        errors: List[str] = []
        seen: set = set()

        for index, row in enumerate(rows, start=1):
            try:
                imported_row = await self._import_row(index, row, seen)
            except ImportRowError as e:
                errors.append(str(e))
                continue
            if imported_row:
                imported += 1
            else:
                skipped += 1

        message = f"Berhasil import {imported} aset. {skipped} duplikat dilewati."
        if errors:
            message += f" {len(errors)} error."

        log_business_event(
            "assets_imported", imported=imported, skipped=skipped, errors=len(errors)
        )
        return {
            "imported_count": imported,
            "skipped_count": skipped,
            "error_count": len(errors),
            "errors": errors[:MAX_REPORTED_IMPORT_ERRORS],
            "message": message,
        }

    async def _import_row(self, index: int, row: Dict[str, Any], seen: set) -> bool:
        """Import one row; False means it was skipped."""
        try:
            data = AssetCreate.model_validate(row)
        except PydanticValidationError as e:
            loan_id = row.get("loan_id") or row.get("loanId") or row.get("nomorAccount")
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise ImportRowError(f"{field}: {first['msg']}", row=index, loan_id=loan_id or "unknown")

        loan_id = str(data.loan_id).strip() if data.loan_id is not None else ""
        if not loan_id or loan_id in seen:
            return False
        if await self.get_by_loan_id(loan_id):
            seen.add(loan_id)
            return False

        try:
            asset = self._build_asset(data)
            self.db.add(asset)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Asset import row failed", row=index, loan_id=loan_id, error=str(e))
            raise ImportRowError(str(e.__class__.__name__), row=index, loan_id=loan_id)

        seen.add(loan_id)
        return True

    async def import_bank_csv(self, content: str) -> Tuple[Dict[str, Any], int]:
        """Parse a bank export and import its rows; returns the result and the raw row count."""
        try:
            bank_file = parse_bank_csv(content)
        except ValueError as e:
            raise ValidationError(str(e), field="content")

        if not bank_file.rows:
            raise ValidationError("Tidak ada data valid.", field="content")

        logger.info(
            "Bank export parsed",
            rows=len(bank_file.rows),
            original_rows=bank_file.original_row_count,
            unmapped=[k for k, v in bank_file.mapping.items() if v is None],
        )
        result = await self.import_assets(bank_file.rows)
        return result, bank_file.original_row_count
