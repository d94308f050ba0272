"""
Indonesian currency and date formatting used by dashboards, letters and reports.
"""
from datetime import date, datetime
from typing import Optional, Union

NO_COLLATERAL_LABEL = "Kredit Tanpa Agunan"

MONTHS_LONG = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]
MONTHS_SHORT = ["Jan", "Feb", "Mar", "Apr", "Mei", "Jun", "Jul", "Agu", "Sep", "Okt", "Nov", "Des"]

DateLike = Union[date, datetime]


def _group_thousands(value: int) -> str:
    return f"{value:,}".replace(",", ".")


def format_rupiah(amount: Optional[float], compact: bool = False) -> str:
    """
    Format an amount as Rupiah.

    Args:
        amount: Amount in Rupiah; None counts as zero
        compact: Use "M" (miliar) and "Jt" (juta) suffixes for large amounts

    Returns:
        e.g. "Rp 1.500.000", or "Rp 1.5 M" / "Rp 25 Jt" when compact
    """
    amount = amount or 0
    if compact:
        if amount >= 1_000_000_000:
            return f"Rp {amount / 1_000_000_000:.1f} M"
        if amount >= 1_000_000:
            return f"Rp {amount / 1_000_000:.0f} Jt"

    rounded = int(round(abs(amount)))
    sign = "-" if amount < 0 and rounded else ""
    return f"{sign}Rp {_group_thousands(rounded)}"


def format_date_id(value: Optional[DateLike]) -> str:
    """Short numeric date, e.g. 5/2/2026."""
    if value is None:
        return ""
    return f"{value.day}/{value.month}/{value.year}"


def format_date_medium_id(value: Optional[DateLike]) -> str:
    """Day and abbreviated month, e.g. 05 Feb 2026."""
    if value is None:
        return ""
    return f"{value.day:02d} {MONTHS_SHORT[value.month - 1]} {value.year}"


def format_date_long_id(value: Optional[DateLike]) -> str:
    """Long form used on letters, e.g. 5 Februari 2026."""
    if value is None:
        return ""
    return f"{value.day} {MONTHS_LONG[value.month - 1]} {value.year}"


def format_datetime_id(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return f"{format_date_id(value)} {value:%H.%M.%S}"


def format_file_size(content: str) -> str:
    """Size of generated text content in kilobytes, e.g. 2.4 KB."""
    return f"{len(content.encode('utf-8')) / 1024:.1f} KB"


def sanitize_collateral_address(value: Optional[str]) -> str:
    """Blank or placeholder collateral addresses mean the loan is unsecured."""
    if value is None:
        return NO_COLLATERAL_LABEL
    cleaned = str(value).strip()
    if cleaned in ("", "-", "0"):
        return NO_COLLATERAL_LABEL
    return cleaned


def percentage(part: float, whole: float, cap: Optional[float] = None) -> float:
    """Share of whole as a percentage rounded to one decimal; zero when whole is empty."""
    if not whole:
        return 0.0
    value = part / whole * 100
    if cap is not None:
        value = min(value, cap)
    return round(value, 1)
