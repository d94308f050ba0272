"""
Tests for the asset registry service.
"""
from datetime import date
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from watukobu.core.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from watukobu.models.database import Assignment, Branch
from watukobu.models.enums import AssetStatus, AssignmentStatus, SpkStatus
from watukobu.schemas.asset import AssetCreate, AssetFilter, AssetUpdate
from watukobu.services.asset_service import AssetService


class TestAssetQueries:
    """Test cases for listing and statistics"""

    @pytest.fixture
    def service(self, seeded):
        return AssetService(seeded)

    @pytest.mark.asyncio
    async def test_list_orders_by_arrears(self, service):
        assets = await service.list_assets()

        assert [a.loan_id for a in assets][:2] == ["LOAN-2024-003", "LOAN-2024-001"]
        arrears = [a.total_arrears for a in assets]
        assert arrears == sorted(arrears, reverse=True)

    @pytest.mark.asyncio
    async def test_filter_by_collector(self, service, dewi):
        assets = await service.list_assets(AssetFilter(collector_id=dewi.id))

        assert {a.loan_id for a in assets} == {"LOAN-2024-004", "LOAN-2024-005"}

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, service):
        assets = await service.list_assets(AssetFilter(search="  bogor "))

        assert {a.loan_id for a in assets} == {"LOAN-2024-004", "LOAN-2024-005"}

    @pytest.mark.asyncio
    async def test_status_and_arrears_filters(self, service):
        macet = await service.list_assets(AssetFilter(status=AssetStatus.MACET, min_arrears=5_000_000))

        assert {a.loan_id for a in macet} == {"LOAN-2024-001", "LOAN-2024-003"}

    @pytest.mark.asyncio
    async def test_limit_and_offset(self, service):
        page = await service.list_assets(AssetFilter(limit=2, offset=1))

        assert [a.loan_id for a in page] == ["LOAN-2024-001", "LOAN-2024-005"]

    @pytest.mark.asyncio
    async def test_stats(self, service):
        stats = await service.asset_stats()

        assert stats.total == 5
        assert stats.total_arrears == 23_250_000
        assert stats.active_count == 5
        assert stats.passive_count == 0
        assert stats.unassigned_count == 0

    @pytest.mark.asyncio
    async def test_get_missing_asset(self, service):
        with pytest.raises(NotFoundError):
            await service.get_asset("missing")


class TestAssetWrites:
    """Test cases for create, update and delete"""

    @pytest.fixture
    def service(self, seeded):
        return AssetService(seeded)

    @pytest.mark.asyncio
    async def test_create_with_defaults(self, service, seeded):
        asset = await service.create_asset(
            AssetCreate.model_validate({
                "nomorAccount": " LOAN-2025-100 ",
                "namaDebitur": "",
                "kantorCabang": "KCP Depok",
                "kanwil": "Jawa Barat",
                "alamatAgunan": "-",
            })
        )

        assert asset.loan_id == "LOAN-2025-100"
        assert asset.debtor_name == "Unknown"
        assert asset.spk_status == SpkStatus.AKTIF.value
        assert asset.status == AssetStatus.MACET.value
        assert asset.total_arrears == 0.0
        assert asset.collateral_address == "Kredit Tanpa Agunan"
        branch = seeded.query(Branch).filter(Branch.name == "KCP Depok").one()
        assert asset.branch_id == branch.id
        assert branch.region == "Jawa Barat"

    @pytest.mark.asyncio
    async def test_create_requires_loan_id(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_asset(AssetCreate(debtor_name="Tanpa Nomor"))

        assert exc_info.value.error_code == "WK_001_LOAN_ID"

    @pytest.mark.asyncio
    async def test_create_duplicate_loan_id(self, service):
        with pytest.raises(ConflictError):
            await service.create_asset(AssetCreate(loan_id="LOAN-2024-001"))

    @pytest.mark.asyncio
    async def test_partial_update(self, service, asset_001):
        updated = await service.update_asset(
            asset_001.id, AssetUpdate.model_validate({"totalArrears": 4_000_000, "status": "JANJI_BAYAR"})
        )

        assert updated.total_arrears == 4_000_000
        assert updated.status == AssetStatus.JANJI_BAYAR.value
        assert updated.debtor_name == "Ahmad Wijaya"

    @pytest.mark.asyncio
    async def test_update_to_taken_loan_id(self, service, asset_001):
        with pytest.raises(ConflictError):
            await service.update_asset(asset_001.id, AssetUpdate(loan_id="LOAN-2024-002"))

    @pytest.mark.asyncio
    async def test_update_to_empty_loan_id(self, service, asset_001):
        with pytest.raises(ValidationError):
            await service.update_asset(asset_001.id, AssetUpdate(loan_id="  "))

    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back(self, service, asset_001, seeded):
        failure = OperationalError("UPDATE assets", {}, Exception("database is locked"))
        with patch.object(seeded, "commit", side_effect=failure):
            with pytest.raises(DatabaseError) as exc_info:
                await service.update_asset(asset_001.id, AssetUpdate(debtor_name="Nama Baru"))

        assert exc_info.value.operation == "update_asset"
        seeded.refresh(asset_001)
        assert asset_001.debtor_name == "Ahmad Wijaya"

    @pytest.mark.asyncio
    async def test_delete_removes_reports(self, service, asset_001, seeded):
        asset_id = asset_001.id
        await service.delete_asset(asset_id)

        with pytest.raises(NotFoundError):
            await service.get_asset(asset_id)
        assert seeded.query(Assignment).filter(Assignment.asset_id == asset_id).count() == 0

    @pytest.mark.asyncio
    async def test_bulk_delete_ignores_unknown(self, service, asset_001):
        assert await service.delete_assets([asset_001.id, "missing"]) == 1

    @pytest.mark.asyncio
    async def test_unassign_cancels_assignment(self, service, asset_001, seeded):
        asset = await service.unassign_asset(asset_001.id)

        assert asset.collector_id is None
        record = seeded.query(Assignment).filter(Assignment.asset_id == asset.id).one()
        assert record.status == AssignmentStatus.CANCELLED.value

    @pytest.mark.asyncio
    async def test_apply_payment_floors_at_zero(self, service, asset_001):
        asset = await service.apply_payment("LOAN-2024-001", 7_000_000)

        assert asset.total_arrears == 0.0
        assert asset.arrears_paid == 7_000_000


class TestAssetImport:
    """Test cases for bulk import"""

    @pytest.fixture
    def service(self, seeded):
        return AssetService(seeded)

    @pytest.mark.asyncio
    async def test_import_skips_duplicates_and_blanks(self, service):
        result = await service.import_assets([
            {"loanId": "LOAN-2025-001", "debtorName": "Baru"},
            {"loanId": "LOAN-2025-001", "debtorName": "Baru lagi"},
            {"loanId": "LOAN-2024-001"},
            {"debtorName": "Tanpa nomor"},
        ])

        assert result["imported_count"] == 1
        assert result["skipped_count"] == 3
        assert result["error_count"] == 0
        assert result["message"] == "Berhasil import 1 aset. 3 duplikat dilewati."

    @pytest.mark.asyncio
    async def test_import_reports_invalid_rows(self, service):
        result = await service.import_assets([
            {"loan_id": "LOAN-2025-002", "spk_status": "AKTIF-X"},
            {"loanId": "LOAN-2025-003"},
        ])

        assert result["imported_count"] == 1
        assert result["error_count"] == 1
        assert result["errors"][0].startswith("LOAN-2025-002: spk_status")
        assert result["message"].endswith("1 error.")

    @pytest.mark.asyncio
    async def test_import_numeric_account_number(self, service):
        result = await service.import_assets([
            {"nomorAccount": 1234567890, "namaDebitur": "Joko", "nomorHp1Debitur": 81234567},
            {"nomorAccount": 1234567891.0, "namaDebitur": "Ani"},
        ])

        assert result["imported_count"] == 2
        assert result["error_count"] == 0
        imported = await service.get_by_loan_id("1234567890")
        assert imported.phone == "81234567"
        assert await service.get_by_loan_id("1234567891") is not None

    @pytest.mark.asyncio
    async def test_import_blank_cells(self, service):
        result = await service.import_assets([
            {
                "nomorAccount": "LN-1",
                "namaDebitur": "Sari",
                "totalTunggakan": "",
                "saldoPokok": "Rp 2.500.000",
                "tanggalRealisasi": "",
                "tanggalJatuhTempo": "31/12/2027",
                "kelolaanTerbitSpk": "",
                "nomorHp2Debitur": "",
            },
        ])

        assert result["error_count"] == 0
        asset = await service.get_by_loan_id("LN-1")
        assert asset.total_arrears == 0.0
        assert asset.principal_balance == 2_500_000
        assert asset.realization_date is None
        assert asset.maturity_date == date(2027, 12, 31)
        assert asset.phone2 is None

    @pytest.mark.asyncio
    async def test_import_unreadable_date_is_an_error(self, service):
        result = await service.import_assets([{"nomorAccount": "LN-2", "tanggalRealisasi": "kemarin"}])

        assert result["error_count"] == 1
        assert result["errors"][0].startswith("LN-2: ")
        assert await service.get_by_loan_id("LN-2") is None

    @pytest.mark.asyncio
    async def test_import_empty(self, service):
        with pytest.raises(ValidationError):
            await service.import_assets([])

    @pytest.mark.asyncio
    async def test_bank_csv_import(self, service):
        content = "ACCTNO;NAMA;TOTAL_TGK\n9001;Joko;1.500.000\n9002;Ani;\n"
        result, original_rows = await service.import_bank_csv(content)

        assert original_rows == 2
        assert result["imported_count"] == 2
        imported = await service.get_by_loan_id("9001")
        assert imported.total_arrears == 1_500_000

    @pytest.mark.asyncio
    async def test_bank_csv_without_usable_columns(self, service):
        with pytest.raises(ValidationError):
            await service.import_bank_csv("FOO;BAR\n1;2\n")
