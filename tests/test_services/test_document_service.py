"""
Tests for the document repository, exports and generated letters.
"""
import csv
import io
from datetime import date, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from watukobu.core.exceptions import DatabaseError, NotFoundError, ValidationError
from watukobu.models.database import Document, VisitReport
from watukobu.models.enums import DocumentType
from watukobu.schemas.document import DocumentCreate, ReportPeriod
from watukobu.seed import seed_id
from watukobu.services.document_service import (
    BANK_CSV_HEADERS,
    DocumentService,
    bank_csv_filename,
    facility_names,
    visit_outcome_label,
)


@pytest.fixture
def service(seeded):
    return DocumentService(seeded)


def _rows(content: str):
    return list(csv.reader(io.StringIO(content)))


class TestRepository:
    """Test cases for registering and listing documents"""

    @pytest.mark.asyncio
    async def test_add_with_content_sizes_document(self, service):
        document = await service.add_document(
            DocumentCreate(title="Catatan", type=DocumentType.COLLATERAL), content="x" * 2048
        )

        assert document.type == "COLLATERAL"
        assert document.file_size == "2.0 KB"
        assert document.upload_date is not None

    @pytest.mark.asyncio
    async def test_add_for_unknown_asset(self, service):
        with pytest.raises(NotFoundError):
            await service.add_document(DocumentCreate(title="SPK", assetId="missing"))

    @pytest.mark.asyncio
    async def test_list_filters_by_type(self, service):
        await service.add_document(DocumentCreate(title="A", type=DocumentType.SPK))
        await service.add_document(DocumentCreate(title="B", type=DocumentType.OTHERS))

        documents = await service.list_documents(DocumentType.SPK)

        assert [d.title for d in documents] == ["A"]

    @pytest.mark.asyncio
    async def test_counts_include_empty_types(self, service):
        await service.add_document(DocumentCreate(title="A", type=DocumentType.SPK))

        counts = await service.document_counts()

        assert counts.total == 1
        assert counts.by_type == {"SPK": 1, "SOMASI": 0, "COLLATERAL": 0, "OTHERS": 0}

    @pytest.mark.asyncio
    async def test_delete(self, service):
        document = await service.add_document(DocumentCreate(title="A"))
        document_id = document.id

        await service.delete_document(document_id)

        with pytest.raises(NotFoundError):
            await service.get_document(document_id)

    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back(self, service, seeded):
        failure = OperationalError("INSERT INTO documents", {}, Exception("disk I/O error"))
        with patch.object(seeded, "commit", side_effect=failure):
            with pytest.raises(DatabaseError) as exc_info:
                await service.add_document(DocumentCreate(title="Gagal"))

        assert exc_info.value.operation == "add_document"
        assert await service.list_documents() == []


class TestLetters:
    """Test cases for surat tugas and somasi generation"""

    @pytest.mark.asyncio
    async def test_somasi_content(self, service, asset_001):
        year = datetime.utcnow().year
        letter = await service.render_letter("somasi_1", asset_001.id)

        assert letter.letter_number == f"001/WK-COLL/{year}"
        assert letter.title == "SURAT PERINGATAN PERTAMA (SOMASI I)"
        assert "PT. WATU KOBU MULTINIAGA" in letter.content
        assert "Yang Terhormat,\nAhmad Wijaya" in letter.content
        assert "TOTAL KEWAJIBAN       : Rp 5.000.000" in letter.content
        assert "Hal     : Peringatan Pembayaran Tunggakan Kredit" in letter.content
        assert letter.document.type == DocumentType.SOMASI.value
        assert letter.document.related_debtor == "Ahmad Wijaya"

    @pytest.mark.asyncio
    async def test_letter_numbers_are_sequential(self, service, asset_001):
        await service.render_letter("somasi_1", asset_001.id)
        second = await service.render_letter("somasi_2", asset_001.id)

        assert second.letter_number.startswith("002/")
        assert "INI ADALAH PERINGATAN TERAKHIR." in second.content

    @pytest.mark.asyncio
    async def test_other_documents_do_not_advance_numbering(self, service):
        await service.add_document(DocumentCreate(title="Foto", type=DocumentType.COLLATERAL))

        assert service.next_letter_number(date(2026, 3, 1)) == "001/WK-COLL/2026"

    @pytest.mark.asyncio
    async def test_deleting_a_letter_does_not_reissue_a_number(self, service, asset_001):
        first = await service.render_letter("somasi_1", asset_001.id)
        second = await service.render_letter("somasi_2", asset_001.id)
        await service.delete_document(first.document.id)

        third = await service.render_letter("somasi_3", asset_001.id)

        assert second.letter_number.startswith("002/")
        assert third.letter_number.startswith("003/")
        assert third.document.letter_number == third.letter_number

    @pytest.mark.asyncio
    async def test_uploaded_spk_does_not_advance_numbering(self, service, asset_001):
        await service.add_document(DocumentCreate(title="SPK dari bank", type=DocumentType.SPK))

        letter = await service.render_letter("surat_tugas", asset_001.id)

        assert letter.letter_number.startswith("001/")

    def test_numbering_restarts_each_year(self, service, seeded):
        seeded.add(Document(title="Somasi lama", type=DocumentType.SOMASI.value,
                            letter_number="041/WK-COLL/2025"))
        seeded.commit()

        assert service.next_letter_number(date(2025, 12, 1)) == "042/WK-COLL/2025"
        assert service.next_letter_number(date(2026, 1, 2)) == "001/WK-COLL/2026"

    @pytest.mark.asyncio
    async def test_surat_tugas_registered_as_spk(self, service, asset_001):
        letter = await service.render_letter("surat_tugas", asset_001.id)

        assert letter.document.type == DocumentType.SPK.value
        assert "Nama Debitur    : Ahmad Wijaya" in letter.content
        assert letter.document.url == "/documents/surat_tugas_LOAN-2024-001.txt"

    @pytest.mark.asyncio
    async def test_unknown_type_falls_back_to_somasi_1(self, service, asset_001):
        letter = await service.render_letter("somasi_9", asset_001.id)

        assert letter.letter_type == "somasi_1"

    @pytest.mark.asyncio
    async def test_letter_for_unknown_asset(self, service):
        with pytest.raises(NotFoundError):
            await service.render_letter("somasi_1", "missing")


class TestExports:
    """Test cases for visit CSV exports and the weekly report"""

    def test_outcome_label_and_facilities(self):
        assert visit_outcome_label(VisitReport(commitment_date=date(2026, 2, 10))) == "Janji Bayar (2026-02-10)"
        assert visit_outcome_label(VisitReport()) == "Macet/Alasan"
        assert facility_names({"school": True, "city_center": True}) == "Sekolah; Pusat Kota"
        assert facility_names(None) == "-"

    def test_filename_from_period(self):
        period = ReportPeriod(start_date=date(2026, 2, 2), end_date=date(2026, 2, 8))
        assert bank_csv_filename([], period) == "Weekly_Report_2026-02-02_2026-02-08.csv"

    @pytest.mark.asyncio
    async def test_only_approved_visits_exported(self, service):
        reports = await service.approved_visits()

        assert [r.id for r in reports] == [seed_id("visit-sample-001")]

    @pytest.mark.asyncio
    async def test_inverted_period(self, service):
        with pytest.raises(ValidationError):
            await service.approved_visits(ReportPeriod(start_date=date(2026, 2, 8), end_date=date(2026, 2, 2)))

    @pytest.mark.asyncio
    async def test_period_excludes_other_weeks(self, service):
        period = ReportPeriod(start_date=date(2000, 1, 1), end_date=date(2000, 1, 7))
        assert await service.approved_visits(period) == []

    @pytest.mark.asyncio
    async def test_simple_visit_csv(self, service):
        rows = _rows(await service.export_visit_csv())

        assert rows[0][0] == "No Rek"
        assert rows[1][0] == "LOAN-2024-001"
        assert rows[1][5] == "Macet/Alasan"
        assert rows[1][6] == "Ekonomi sedang sulit"
        assert rows[1][8] == "-6.229700, 106.848600"

    @pytest.mark.asyncio
    async def test_bank_weekly_csv(self, service):
        filename, content = await service.export_bank_csv()
        rows = _rows(content)

        assert filename.startswith("Weekly_Report_") and filename.endswith(".csv")
        assert rows[0] == BANK_CSV_HEADERS
        row = rows[1]
        assert len(row) == 17
        assert row[0] == "KCP Jakarta Selatan"
        assert row[2] == "LOAN-2024-001"
        assert row[8] == "Unknown"
        assert row[10] == "Tidak"
        assert row[12] == "-"
        assert row[15].startswith("Depan [") and "; Samping [" in row[15]
        assert row[16] == "/uploads/visits/loan-2024-001-front.jpg; /uploads/visits/loan-2024-001-side.jpg"

    @pytest.mark.asyncio
    async def test_weekly_report_text(self, service):
        reports = await service.approved_visits()
        period = ReportPeriod(start_date=date(2026, 2, 2), end_date=date(2026, 2, 8))

        text = service.weekly_report_text(reports, period, generated_at=datetime(2026, 2, 9, 8, 30))

        assert "WEEKLY VALIDATION REPORT" in text
        assert "Generated: 9/2/2026 08.30.00" in text
        assert "Period: 2/2/2026 - 8/2/2026" in text
        assert "Total Approved Reports: 1" in text
        assert "[1] DEBITUR: Ahmad Wijaya" in text
        assert "Collector        : Budi Santoso" in text
        assert text.rstrip().endswith("END OF REPORT")

    @pytest.mark.asyncio
    async def test_generate_weekly_report_registers_document(self, service):
        report = await service.generate_weekly_report()

        assert report.report_count == 1
        assert report.filename.endswith(".txt")
        assert report.document.type == DocumentType.OTHERS.value
        stored = await service.get_document(report.document.id)
        assert stored.content == report.content
