"""
Document service: the document repository plus generated letters and reports.

Letters and the weekly validation report are rendered from the jinja2 text
templates in watukobu/templates and registered in the repository with
their content, so they can be downloaded again later.
"""
import csv
import io
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from watukobu.core.config import get_settings
from watukobu.core.exceptions import DatabaseError, NotFoundError, ValidationError
from watukobu.core.logging import get_logger, log_business_event
from watukobu.models.database import Asset, Document, VisitReport
from watukobu.models.enums import DocumentType, LetterType, ValidationStatus
from watukobu.schemas.document import (
    DocumentCounts, DocumentCreate, DocumentResponse, GeneratedLetter, ReportPeriod, WeeklyReport,
)
from watukobu.utils import evidence_checks
from watukobu.utils.formatting import (
    format_date_id, format_date_long_id, format_datetime_id, format_file_size, format_rupiah,
)

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

LETTERS = {
    LetterType.SURAT_TUGAS: ("SURAT TUGAS PENAGIHAN", "Penugasan Penagihan Kredit"),
    LetterType.SOMASI_1: ("SURAT PERINGATAN PERTAMA (SOMASI I)", "Peringatan Pembayaran Tunggakan Kredit"),
    LetterType.SOMASI_2: ("SURAT PERINGATAN KEDUA (SOMASI II)", "Peringatan Terakhir Pembayaran Tunggakan Kredit"),
    LetterType.SOMASI_3: ("SURAT PERINGATAN KETIGA (SOMASI III) - FINAL", "Pemberitahuan Eksekusi Agunan"),
}

SIMPLE_CSV_HEADERS = [
    "No Rek", "Debitur", "Telepon", "Tanggal Visit", "Alamat Agunan",
    "Hasil", "Permasalahan", "Janji Bayar", "GPS Coordinates",
]

BANK_CSV_HEADERS = [
    "KANTOR CABANG", "KANWIL", "NOMOR ACCOUNT", "NAMA DEBITUR", "NOMOR TELEPON",
    "PERMASALAHAN", "KOMITMEN REALISASI", "ALAMAT AGUNAN", "STATUS AGUNAN",
    "KONDISI AGUNAN", "LISTRIK", "AIR", "FASILITAS (<5KM)", "MARKETABLE",
    "KOORDINAT", "FOTO", "LINK FOTO",
]

FACILITY_LABELS = {
    "school": "Sekolah",
    "mall": "Mall",
    "hospital": "Rumah Sakit",
    "city_center": "Pusat Kota",
}

PHOTO_LABELS = (
    ("photo_front", "photo_front_taken_at", "Depan"),
    ("photo_side", "photo_side_taken_at", "Samping"),
    ("photo_with_debtor", "photo_with_debtor_taken_at", "Dengan Debitur"),
)


def yes_no(value: Optional[bool]) -> str:
    return "Ya" if value else "Tidak"


def visit_outcome_label(report: VisitReport) -> str:
    if report.commitment_date:
        return f"Janji Bayar ({report.commitment_date.isoformat()})"
    return "Macet/Alasan"


def facility_names(facilities: Optional[dict]) -> str:
    names = [label for key, label in FACILITY_LABELS.items() if facilities and facilities.get(key)]
    return "; ".join(names) if names else "-"


def photo_evidence(report: VisitReport) -> str:
    parts = [
        f"{label} [{format_datetime_id(getattr(report, taken_field))}]"
        for url_field, taken_field, label in PHOTO_LABELS
        if getattr(report, url_field)
    ]
    return "; ".join(parts) if parts else "-"


def photo_links(report: VisitReport) -> str:
    links = [getattr(report, url_field) for url_field, _, _ in PHOTO_LABELS if getattr(report, url_field)]
    return "; ".join(links) if links else "-"


def _write_csv(headers: List[str], rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def visit_report_csv(reports: List[VisitReport]) -> str:
    """Simple visit export used by the validation screen."""
    rows = []
    for report in reports:
        asset = report.asset
        rows.append([
            asset.loan_id if asset else "",
            asset.debtor_name if asset else "",
            (asset.phone or "") if asset else "",
            format_date_id(report.submitted_at),
            (asset.collateral_address or "") if asset else "",
            visit_outcome_label(report),
            (report.problem_description or "").replace(",", ";"),
            report.commitment_date.isoformat() if report.commitment_date else "-",
            evidence_checks.format_coordinates(report) or "-",
        ])
    return _write_csv(SIMPLE_CSV_HEADERS, rows)


def bank_weekly_csv(reports: List[VisitReport]) -> str:
    """
    Weekly visit export in the column order the bank requires.

    Values containing commas, quotes or newlines are quoted by the csv module.
    """
    rows = []
    for report in reports:
        asset = report.asset
        rows.append([
            (asset.branch if asset else None) or "-",
            (asset.region if asset else None) or "-",
            asset.loan_id if asset else "",
            asset.debtor_name if asset else "",
            (asset.phone if asset else None) or "",
            report.problem_description or "",
            format_date_id(report.commitment_date) if report.commitment_date else "-",
            (asset.collateral_address if asset else None) or "",
            report.collateral_status or "Unknown",
            report.collateral_condition or "Unknown",
            yes_no(report.has_electricity),
            yes_no(report.has_water),
            facility_names(report.facilities),
            yes_no(report.is_marketable),
            evidence_checks.format_coordinates(report),
            photo_evidence(report),
            photo_links(report),
        ])
    return _write_csv(BANK_CSV_HEADERS, rows)


def bank_csv_filename(reports: List[VisitReport], period: Optional[ReportPeriod] = None) -> str:
    """Weekly_Report_<start>_<end>.csv from the period, or the earliest report and today."""
    today = datetime.utcnow().date()
    start = period.start_date if period and period.start_date else None
    if start is None:
        start = min((r.submitted_at.date() for r in reports), default=today)
    end = period.end_date if period and period.end_date else today
    return f"Weekly_Report_{start.isoformat()}_{end.isoformat()}.csv"


class DocumentService:
    """Service for the document repository and generated collection paperwork."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.settings = get_settings()
        self.template_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.template_env.filters["rupiah"] = format_rupiah

    def _commit(self, operation: str, **context) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Document repository write failed", operation=operation, error=str(e), **context)
            raise DatabaseError(str(e), operation=operation, **context)

    # Repository

    async def list_documents(self, doc_type: Optional[DocumentType] = None) -> List[Document]:
        query = self.db.query(Document)
        if doc_type:
            query = query.filter(Document.type == doc_type.value)
        return query.order_by(Document.created_at.desc()).all()

    async def get_document(self, document_id: str) -> Document:
        document = self.db.get(Document, document_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    async def add_document(self, data: DocumentCreate, content: Optional[str] = None,
                           letter_number: Optional[str] = None) -> Document:
        if data.asset_id and self.db.get(Asset, data.asset_id) is None:
            raise NotFoundError("Asset", data.asset_id)
        document = Document(
            title=data.title,
            type=data.type.value,
            related_debtor=data.related_debtor,
            asset_id=data.asset_id,
            upload_date=data.upload_date or datetime.utcnow().date(),
            file_size=data.file_size or (format_file_size(content) if content is not None else None),
            url=data.url,
            content=content,
            letter_number=letter_number,
        )
        self.db.add(document)
        self._commit("add_document", title=data.title)
        self.db.refresh(document)
        log_business_event("document_added", document_id=document.id, type=document.type)
        return document

    async def delete_document(self, document_id: str) -> None:
        document = await self.get_document(document_id)
        self.db.delete(document)
        self._commit("delete_document", document_id=document_id)
        log_business_event("document_deleted", document_id=document_id)

    async def document_counts(self) -> DocumentCounts:
        rows = self.db.query(Document.type, func.count(Document.id)).group_by(Document.type).all()
        by_type: Dict[str, int] = {doc_type.value: 0 for doc_type in DocumentType}
        by_type.update({doc_type: count for doc_type, count in rows})
        return DocumentCounts(total=sum(by_type.values()), by_type=by_type)

    # Exports

    async def approved_visits(self, period: Optional[ReportPeriod] = None) -> List[VisitReport]:
        """Approved visits in an inclusive date range, oldest first."""
        query = self.db.query(VisitReport).filter(VisitReport.status == ValidationStatus.APPROVED.value)
        if period and period.start_date and period.end_date and period.start_date > period.end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        if period and period.start_date:
            query = query.filter(VisitReport.submitted_at >= datetime.combine(period.start_date, datetime.min.time()))
        if period and period.end_date:
            end = datetime.combine(period.end_date + timedelta(days=1), datetime.min.time())
            query = query.filter(VisitReport.submitted_at < end)
        return query.order_by(VisitReport.submitted_at).all()

    async def export_visit_csv(self, period: Optional[ReportPeriod] = None) -> str:
        return visit_report_csv(await self.approved_visits(period))

    async def export_bank_csv(self, period: Optional[ReportPeriod] = None) -> Tuple[str, str]:
        """Returns (filename, csv content)."""
        reports = await self.approved_visits(period)
        filename = bank_csv_filename(reports, period)
        logger.info("Bank weekly CSV generated", filename=filename, report_count=len(reports))
        return filename, bank_weekly_csv(reports)

    def weekly_report_text(self, reports: List[VisitReport], period: Optional[ReportPeriod] = None,
                           generated_at: Optional[datetime] = None) -> str:
        generated_at = generated_at or datetime.utcnow()
        entries = [
            {
                "debtor_name": r.asset.debtor_name if r.asset else "",
                "loan_id": r.asset.loan_id if r.asset else "",
                "phone": (r.asset.phone if r.asset else None) or "-",
                "visit_date": format_date_id(r.submitted_at),
                "collateral_address": (r.asset.collateral_address if r.asset else None) or "-",
                "outcome": visit_outcome_label(r),
                "problem": r.problem_description or "-",
                "coordinates": evidence_checks.format_coordinates(r) or "-",
                "collector_name": r.collector.name if r.collector else "-",
                "branch": (r.asset.branch if r.asset else None) or "-",
            }
            for r in reports
        ]
        template = self.template_env.get_template("weekly_report.txt.j2")
        return template.render(
            company_name=self.settings.company_name,
            generated_at=format_datetime_id(generated_at),
            period_start=format_date_id(period.start_date) if period and period.start_date else "-",
            period_end=format_date_id(period.end_date) if period and period.end_date else "-",
            entries=entries,
        )

    async def generate_weekly_report(self, period: Optional[ReportPeriod] = None) -> WeeklyReport:
        """Render the printable weekly validation report and register it as an OTHERS document."""
        reports = await self.approved_visits(period)
        content = self.weekly_report_text(reports, period)
        filename = bank_csv_filename(reports, period).replace(".csv", ".txt")

        document = await self.add_document(
            DocumentCreate(
                title=filename,
                type=DocumentType.OTHERS,
                file_size=format_file_size(content),
                url=f"/documents/{filename}",
            ),
            content=content,
        )
        return WeeklyReport(
            filename=filename,
            report_count=len(reports),
            content=content,
            document=DocumentResponse.model_validate(document),
        )

    # Letters

    def next_letter_number(self, today: Optional[date] = None) -> str:
        """Next <nnn>/WK-COLL/<year> number, one above the highest issued this year."""
        today = today or datetime.utcnow().date()
        suffix = f"/WK-COLL/{today.year}"
        issued = (
            self.db.query(Document.letter_number)
            .filter(Document.letter_number.like(f"%{suffix}"))
            .all()
        )
        sequences = [int(number.split("/", 1)[0]) for (number,) in issued if number.split("/", 1)[0].isdigit()]
        return f"{max(sequences, default=0) + 1:03d}{suffix}"

    async def render_letter(self, letter_type: str, asset_id: str) -> GeneratedLetter:
        """
        Render a surat tugas or somasi letter for one debtor and register it.

        Unknown letter types fall back to SOMASI I.
        """
        asset = self.db.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("Asset", asset_id)

        try:
            letter_type = LetterType(letter_type)
        except ValueError:
            logger.warning("Unknown letter type, using somasi_1", letter_type=letter_type)
            letter_type = LetterType.SOMASI_1
        title, subject = LETTERS[letter_type]

        today = datetime.utcnow().date()
        letter_number = self.next_letter_number(today)
        template = self.template_env.get_template(f"letters/{letter_type.value}.txt.j2")
        content = template.render(
            asset=asset,
            title=title,
            subject=subject,
            letter_number=letter_number,
            letter_date=format_date_long_id(today),
            company_name=self.settings.company_name,
            company_address=self.settings.company_address,
            company_city=self.settings.company_city,
            signatory=self.settings.letter_signatory,
        )

        filename = f"{letter_type.value}_{asset.loan_id}.txt"
        doc_type = DocumentType.SPK if letter_type == LetterType.SURAT_TUGAS else DocumentType.SOMASI
        document = await self.add_document(
            DocumentCreate(
                title=f"{title} - {asset.debtor_name}",
                type=doc_type,
                related_debtor=asset.debtor_name,
                asset_id=asset.id,
                upload_date=today,
                url=f"/documents/{filename}",
            ),
            content=content,
            letter_number=letter_number,
        )
        log_business_event(
            "letter_generated",
            letter_type=letter_type.value,
            letter_number=letter_number,
            asset_id=asset.id,
        )
        return GeneratedLetter(
            letter_number=letter_number,
            letter_type=letter_type.value,
            title=title,
            content=content,
            document=DocumentResponse.model_validate(document),
        )
