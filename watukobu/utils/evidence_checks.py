"""
Static heuristics applied to visit evidence before an administrator reviews it.

Photos must be taken close to the moment the report was submitted, and the
report must carry GPS coordinates. These checks only flag reports; approval
stays a manual decision.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from watukobu.models.database import VisitReport

DEFAULT_TOLERANCE = timedelta(minutes=30)


@dataclass
class EvidenceFlags:
    """Heuristic results for one visit report."""

    has_coordinates: bool
    has_required_photos: bool
    all_photos_valid: bool

    @property
    def is_suspicious(self) -> bool:
        return not self.all_photos_valid


def is_timestamp_valid(
    photo_time: Optional[datetime],
    submitted_at: Optional[datetime],
    tolerance: timedelta = DEFAULT_TOLERANCE,
) -> bool:
    """A photo counts only if it was captured within tolerance of submission."""
    if photo_time is None or submitted_at is None:
        return False
    return abs(submitted_at - photo_time) <= tolerance


def all_photos_valid(report: VisitReport, tolerance: timedelta = DEFAULT_TOLERANCE) -> bool:
    """Front and side photos are mandatory; the photo with the debtor is checked when present."""
    front_ok = is_timestamp_valid(report.photo_front_taken_at, report.submitted_at, tolerance)
    side_ok = is_timestamp_valid(report.photo_side_taken_at, report.submitted_at, tolerance)
    if report.photo_with_debtor_taken_at is not None:
        with_debtor_ok = is_timestamp_valid(
            report.photo_with_debtor_taken_at, report.submitted_at, tolerance
        )
    else:
        with_debtor_ok = True
    return front_ok and side_ok and with_debtor_ok


def has_required_photos(report: VisitReport) -> bool:
    return bool(report.photo_front) and bool(report.photo_side)


def has_coordinates(report: VisitReport) -> bool:
    return report.gps_lat is not None and report.gps_lng is not None


def evaluate(report: VisitReport, tolerance: timedelta = DEFAULT_TOLERANCE) -> EvidenceFlags:
    return EvidenceFlags(
        has_coordinates=has_coordinates(report),
        has_required_photos=has_required_photos(report),
        all_photos_valid=all_photos_valid(report, tolerance),
    )


def format_coordinates(report: VisitReport) -> str:
    if not has_coordinates(report):
        return ""
    return f"{report.gps_lat:.6f}, {report.gps_lng:.6f}"
