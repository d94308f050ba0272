"""Enumerations shared by models, schemas and services."""

from enum import Enum


class Role(str, Enum):
    """User role enumeration"""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    COLLECTOR = "COLLECTOR"


class SpkStatus(str, Enum):
    """Kelolaan terbit SPK"""
    AKTIF = "AKTIF"
    PASIF = "PASIF"


class AssetStatus(str, Enum):
    """Collectibility of a loan case"""
    LANCAR = "LANCAR"
    JANJI_BAYAR = "JANJI_BAYAR"
    MACET = "MACET"


class ValidationStatus(str, Enum):
    """Visit report review status"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentMatchStatus(str, Enum):
    """Payment report reconciliation status"""
    PENDING = "PENDING"
    MATCHED = "MATCHED"
    REJECTED = "REJECTED"


class VisitOutcome(str, Enum):
    """Whether the collector met the debtor"""
    BERTEMU = "BERTEMU"
    TIDAK_BERTEMU = "TIDAK_BERTEMU"


class PaymentMethod(str, Enum):
    TRANSFER = "TRANSFER"
    VIRTUAL_ACCOUNT = "VIRTUAL_ACCOUNT"
    CASH = "CASH"


class PaymentOutcome(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class AssignmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CollateralStatus(str, Enum):
    DIHUNI = "Dihuni"
    TIDAK_DIHUNI = "Tidak Dihuni"


class CollateralCondition(str, Enum):
    TERAWAT = "Terawat"
    RUSAK = "Rusak"


class DocumentType(str, Enum):
    SPK = "SPK"
    SOMASI = "SOMASI"
    COLLATERAL = "COLLATERAL"
    OTHERS = "OTHERS"


class LetterType(str, Enum):
    """Generated collection letters"""
    SURAT_TUGAS = "surat_tugas"
    SOMASI_1 = "somasi_1"
    SOMASI_2 = "somasi_2"
    SOMASI_3 = "somasi_3"
