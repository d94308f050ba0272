"""
Parsing of the bank's SPK attachment export (Lampiran SPK) into asset rows.

Bank exports differ between branches: delimiter, header spelling and column
order all vary. Columns are located through alias lists; aliases are tried in
order and the first header containing one (upper-cased) wins.
"""
import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from watukobu.models.enums import SpkStatus

BANK_HEADER_MAPPINGS: Dict[str, List[str]] = {
    "loan_id": ["ACCTNO", "ACC", "NO REK", "NOREK", "ACCOUNT"],
    "debtor_name": ["NAMA DEBITUR", "NAMA_DEBITUR", "NAMA", "DEBITUR"],
    "identity_address": ["ALAMAT_DEV", "ALAMAT KTP", "ALAMAT DEBITUR", "ALAMAT"],
    "office_address": ["ALAMAT_KANTOR", "ALAMAT KANTOR"],
    "phone": ["HP1", "NO HP", "TELEPON", "HP"],
    "phone2": ["HP2", "HP 2"],
    "office_phone": ["TELP_KANTOR", "TELEPON KANTOR"],
    "emergency_name": ["NAMA_DARURAT", "NAMA DARURAT", "EMERGENCY"],
    "emergency_phone": ["HP_DARURAT", "DARURAT", "TELEPON DARURAT"],
    "branch": ["CABANG", "BRANCH", "KC"],
    "region": ["ARCOLL", "KANWIL", "REGION"],
    "spk_status": ["KELOLAAN", "STATUS", "STATUS SPK"],
    "credit_type": ["JENIS_KREDIT01", "JENIS KREDIT", "KREDIT"],
    "collateral_address": ["ALAMAT_AGUNAN", "ALAMAT AGUNAN"],
    "initial_plafond": ["PLAFON", "PLAFOND", "PLAFOND AWAL"],
    "realization_date": ["TGL_REALISASI", "TANGGAL REALISASI"],
    "maturity_date": ["TGL_JT", "JATUH TEMPO"],
    "principal_balance": ["SALDO POKOK", "CBAL", "OS_POKOK"],
    "interest_arrears": ["TGK_BUNGA01", "TUNGGAKAN BUNGA"],
    "penalty_arrears": ["TGK_DENDA01", "TUNGGAKAN DENDA"],
    "total_arrears": ["TOTAL_TGK", "TOTAL TUNGGAKAN"],
    "total_payoff": ["LUNAS_KREDIT", "TOTAL LUNAS"],
}

AMOUNT_FIELDS = (
    "initial_plafond", "principal_balance", "interest_arrears",
    "penalty_arrears", "total_arrears", "total_payoff",
)
DATE_FIELDS = ("realization_date", "maturity_date")
TEXT_FIELDS = (
    "loan_id", "debtor_name", "identity_address", "office_address", "office_phone",
    "emergency_name", "emergency_phone", "branch", "region", "credit_type", "collateral_address",
)

_AMOUNT_NOISE = re.compile(r"(rp|\s|\.|,)", re.IGNORECASE)
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y%m%d", "%d.%m.%Y")


@dataclass
class BankFile:
    """Result of parsing one export."""

    headers: List[str]
    mapping: Dict[str, Optional[str]]
    rows: List[Dict[str, object]] = field(default_factory=list)
    original_row_count: int = 0


def detect_delimiter(header_line: str) -> str:
    return ";" if ";" in header_line else ","


def find_column(headers: List[str], aliases: List[str]) -> Optional[str]:
    """Return the header containing the earliest alias, upper-cased substring match."""
    normalized = [h.upper().strip() for h in headers]
    for alias in aliases:
        for index, header in enumerate(normalized):
            if alias.upper() in header:
                return headers[index]
    return None


def parse_amount(value: Optional[str]) -> float:
    """Parse "Rp 1.250.000" style amounts; anything unreadable is zero."""
    if not value:
        return 0.0
    cleaned = _AMOUNT_NOISE.sub("", str(value))
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value or not str(value).strip():
        return None
    raw = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue
    return None


def build_mapping(headers: List[str]) -> Dict[str, Optional[str]]:
    return {name: find_column(headers, aliases) for name, aliases in BANK_HEADER_MAPPINGS.items()}


def _cell(row: Dict[str, str], column: Optional[str]) -> str:
    if not column:
        return ""
    return (row.get(column) or "").replace('"', "").strip()


def convert_row(row: Dict[str, str], mapping: Dict[str, Optional[str]]) -> Dict[str, object]:
    """Turn one raw export row into asset fields."""
    asset: Dict[str, object] = {name: _cell(row, mapping[name]) for name in TEXT_FIELDS}
    if not mapping["debtor_name"]:
        asset["debtor_name"] = "Unknown"

    phones = [p for p in (_cell(row, mapping["phone"]), _cell(row, mapping["phone2"])) if p]
    asset["phone"] = " / ".join(phones)

    spk_raw = _cell(row, mapping["spk_status"]).upper()
    asset["spk_status"] = SpkStatus.AKTIF.value if "AKTIF" in spk_raw else SpkStatus.PASIF.value

    for name in AMOUNT_FIELDS:
        asset[name] = parse_amount(_cell(row, mapping[name]))
    for name in DATE_FIELDS:
        asset[name] = parse_date(_cell(row, mapping[name]))
    asset["principal_arrears"] = 0.0
    return asset


def parse_bank_csv(content: str) -> BankFile:
    """
    Parse a bank export into asset rows.

    Raises:
        ValueError: When neither the account number nor the debtor name column exists
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        return BankFile(headers=[], mapping={})

    delimiter = detect_delimiter(lines[0])
    reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)
    records = list(reader)
    headers = [h.replace('"', "").strip() for h in records[0]]
    mapping = build_mapping(headers)

    if not mapping["loan_id"] and not mapping["debtor_name"]:
        raise ValueError("Tidak dapat menemukan kolom NAMA atau ACCTNO.")

    rows: List[Dict[str, object]] = []
    data_records = records[1:]
    for values in data_records:
        # rows with fewer than half the columns are treated as broken lines
        if len(values) < len(headers) / 2:
            continue
        raw = {header: (values[i] if i < len(values) else "") for i, header in enumerate(headers)}
        has_id = bool(_cell(raw, mapping["loan_id"]))
        has_name = bool(_cell(raw, mapping["debtor_name"]))
        if not (has_id or has_name):
            continue
        rows.append(convert_row(raw, mapping))

    return BankFile(headers=headers, mapping=mapping, rows=rows, original_row_count=len(data_records))
