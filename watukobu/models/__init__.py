"""
Models package for the Watu Kobu Collections Service.
"""
from .database import (
    Asset, Assignment, Base, Branch, Document, PaymentReport, User, VisitReport,
)

__all__ = [
    "Asset", "Assignment", "Base", "Branch", "Document", "PaymentReport", "User", "VisitReport",
]
