"""SQLAlchemy database models for the collections service."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey,
    String, Text, JSON, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from watukobu.models.enums import (
    AssetStatus, AssignmentStatus, DocumentType, PaymentMatchStatus,
    Role, SpkStatus, ValidationStatus,
)

Base = declarative_base()


def generate_id() -> str:
    return str(uuid.uuid4())


class Branch(Base):
    """Bank branch office (kantor cabang) owning loan cases."""
    __tablename__ = "branches"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False, unique=True)
    region = Column(String(120), nullable=False, default="Unknown")

    assets = relationship("Asset", back_populates="branch_ref")


class User(Base):
    """Staff account: admin, manager or field collector."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.COLLECTOR.value)
    employee_id = Column(String(50), nullable=True, unique=True)
    area = Column(String(120), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    assets = relationship("Asset", back_populates="collector")
    visit_reports = relationship("VisitReport", back_populates="collector")
    payment_reports = relationship("PaymentReport", back_populates="collector")


class Asset(Base):
    """Loan case handed over by the bank for collection."""
    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=generate_id)
    loan_id = Column(String(64), nullable=False, unique=True, index=True)
    debtor_name = Column(String(255), nullable=False, default="Unknown")
    creditor_name = Column(String(255), nullable=True)
    branch = Column(String(120), nullable=True)
    region = Column(String(120), nullable=True)
    branch_id = Column(String(36), ForeignKey("branches.id"), nullable=True)
    spk_status = Column(String(10), nullable=False, default=SpkStatus.AKTIF.value)
    credit_type = Column(String(120), nullable=True)

    collateral_address = Column(Text, nullable=True)
    identity_address = Column(Text, nullable=True)
    office_address = Column(Text, nullable=True)
    phone = Column(String(100), nullable=True)
    phone2 = Column(String(50), nullable=True)
    office_phone = Column(String(50), nullable=True)
    emergency_name = Column(String(255), nullable=True)
    emergency_phone = Column(String(50), nullable=True)
    emergency_address = Column(Text, nullable=True)

    initial_plafond = Column(Float, nullable=False, default=0.0)
    realization_date = Column(Date, nullable=True)
    maturity_date = Column(Date, nullable=True)
    principal_balance = Column(Float, nullable=False, default=0.0)
    interest_arrears = Column(Float, nullable=False, default=0.0)
    penalty_arrears = Column(Float, nullable=False, default=0.0)
    principal_arrears = Column(Float, nullable=False, default=0.0)
    total_arrears = Column(Float, nullable=False, default=0.0, index=True)
    arrears_paid = Column(Float, nullable=False, default=0.0)
    total_payoff = Column(Float, nullable=False, default=0.0)

    status = Column(String(20), nullable=False, default=AssetStatus.MACET.value)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)

    collector_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch_ref = relationship("Branch", back_populates="assets")
    collector = relationship("User", back_populates="assets")
    assignments = relationship("Assignment", back_populates="asset", cascade="all, delete-orphan")
    visit_reports = relationship("VisitReport", back_populates="asset", cascade="all, delete-orphan")
    payment_reports = relationship("PaymentReport", back_populates="asset", cascade="all, delete-orphan")


class Assignment(Base):
    """Record of a case being handed to a collector."""
    __tablename__ = "assignments"
    __table_args__ = (UniqueConstraint("asset_id", "collector_id", name="uq_assignment_asset_collector"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    asset_id = Column(String(36), ForeignKey("assets.id"), nullable=False, index=True)
    collector_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default=AssignmentStatus.ACTIVE.value)
    due_date = Column(DateTime, nullable=True)
    assigned_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    asset = relationship("Asset", back_populates="assignments")
    collector = relationship("User")


class VisitReport(Base):
    """Field visit evidence submitted by a collector."""
    __tablename__ = "visit_reports"

    id = Column(String(36), primary_key=True, default=generate_id)
    asset_id = Column(String(36), ForeignKey("assets.id"), nullable=False, index=True)
    collector_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    outcome = Column(String(20), nullable=False)

    problem_description = Column(Text, nullable=True)
    commitment_date = Column(Date, nullable=True)
    collateral_status = Column(String(20), nullable=True)
    collateral_condition = Column(String(20), nullable=True)
    has_electricity = Column(Boolean, nullable=True)
    has_water = Column(Boolean, nullable=True)
    facilities = Column(JSON, nullable=True)
    is_marketable = Column(Boolean, nullable=True)
    gps_lat = Column(Float, nullable=True)
    gps_lng = Column(Float, nullable=True)

    photo_front = Column(String(500), nullable=True)
    photo_side = Column(String(500), nullable=True)
    photo_with_debtor = Column(String(500), nullable=True)
    photo_front_taken_at = Column(DateTime, nullable=True)
    photo_side_taken_at = Column(DateTime, nullable=True)
    photo_with_debtor_taken_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    submitted_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    status = Column(String(20), nullable=False, default=ValidationStatus.PENDING.value, index=True)
    rejection_reason = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    processed_by = Column(String(36), nullable=True)

    asset = relationship("Asset", back_populates="visit_reports")
    collector = relationship("User", back_populates="visit_reports")


class PaymentReport(Base):
    """Payment evidence submitted by a collector."""
    __tablename__ = "payment_reports"

    id = Column(String(36), primary_key=True, default=generate_id)
    asset_id = Column(String(36), ForeignKey("assets.id"), nullable=False, index=True)
    collector_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    submitted_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    payment_method = Column(String(20), nullable=False)
    payment_outcome = Column(String(10), nullable=False)
    paid_amount = Column(Float, nullable=False, default=0.0)
    promise_amount = Column(Float, nullable=True)
    evidence_photo = Column(String(500), nullable=True)
    new_promise_date = Column(Date, nullable=True)
    failure_reason = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=PaymentMatchStatus.PENDING.value, index=True)
    rejection_reason = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    processed_by = Column(String(36), nullable=True)

    asset = relationship("Asset", back_populates="payment_reports")
    collector = relationship("User", back_populates="payment_reports")


class Document(Base):
    """Entry in the document repository, uploaded or generated."""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default=DocumentType.OTHERS.value)
    related_debtor = Column(String(255), nullable=True)
    asset_id = Column(String(36), ForeignKey("assets.id", ondelete="SET NULL"), nullable=True)
    upload_date = Column(Date, nullable=False, default=lambda: datetime.utcnow().date())
    file_size = Column(String(20), nullable=True)
    url = Column(String(500), nullable=True)
    content = Column(Text, nullable=True)
    letter_number = Column(String(32), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
