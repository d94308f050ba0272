"""
Request and response schemas for visit and payment evidence.
"""
from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from watukobu.models.enums import (
    CollateralCondition, CollateralStatus, PaymentMethod, PaymentOutcome, VisitOutcome,
)


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Facilities(BaseModel):
    """Public facilities within 5 km of the collateral."""

    school: bool = False
    mall: bool = False
    hospital: bool = False
    city_center: bool = Field(default=False, validation_alias=AliasChoices("city_center", "cityCenter"))


class VisitReportCreate(BaseModel):
    """Request schema for a collector's field visit report."""

    asset_id: str = Field(..., validation_alias=AliasChoices("asset_id", "assetId"))
    outcome: Optional[VisitOutcome] = Field(
        default=None, description="Defaults from the presence of a photo with the debtor"
    )
    problem_description: Optional[str] = None
    commitment_date: Optional[date] = Field(default=None, description="Promise-to-pay date")
    collateral_status: Optional[CollateralStatus] = None
    collateral_condition: Optional[CollateralCondition] = None
    has_electricity: Optional[bool] = None
    has_water: Optional[bool] = None
    facilities: Optional[Facilities] = None
    is_marketable: Optional[bool] = None
    gps_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    gps_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    photo_front: Optional[str] = None
    photo_side: Optional[str] = None
    photo_with_debtor: Optional[str] = None
    photo_front_taken_at: Optional[datetime] = None
    photo_side_taken_at: Optional[datetime] = None
    photo_with_debtor_taken_at: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("photo_front_taken_at", "photo_side_taken_at", "photo_with_debtor_taken_at")
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)


class VisitDecision(BaseModel):
    """Administrator decision on a visit report."""

    status: str = Field(..., description="APPROVED or REJECTED")
    rejection_reason: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rejection_reason", "rejectionReason")
    )


class EvidenceFlagsSchema(BaseModel):
    has_coordinates: bool
    has_required_photos: bool
    all_photos_valid: bool
    is_suspicious: bool


class VisitReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    asset_id: str
    loan_id: Optional[str] = None
    debtor_name: Optional[str] = None
    collector_id: str
    collector_name: Optional[str] = None
    outcome: str
    problem_description: Optional[str] = None
    commitment_date: Optional[date] = None
    collateral_status: Optional[str] = None
    collateral_condition: Optional[str] = None
    has_electricity: Optional[bool] = None
    has_water: Optional[bool] = None
    facilities: Optional[dict] = None
    is_marketable: Optional[bool] = None
    gps_lat: Optional[float] = None
    gps_lng: Optional[float] = None
    photo_front: Optional[str] = None
    photo_side: Optional[str] = None
    photo_with_debtor: Optional[str] = None
    photo_front_taken_at: Optional[datetime] = None
    photo_side_taken_at: Optional[datetime] = None
    photo_with_debtor_taken_at: Optional[datetime] = None
    notes: Optional[str] = None
    submitted_at: datetime
    status: str
    rejection_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    flags: Optional[EvidenceFlagsSchema] = None


class VisitReportEnvelope(BaseModel):
    success: bool = True
    data: VisitReportResponse


class VisitReportListResponse(BaseModel):
    success: bool = True
    data: List[VisitReportResponse]
    count: int


class PaymentReportCreate(BaseModel):
    """Request schema for payment evidence submitted from the field."""

    asset_id: str = Field(..., validation_alias=AliasChoices("asset_id", "assetId"))
    payment_method: PaymentMethod = Field(
        ..., validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    payment_outcome: PaymentOutcome = Field(
        ..., validation_alias=AliasChoices("payment_outcome", "paymentStatus")
    )
    paid_amount: float = Field(default=0.0, ge=0)
    promise_amount: Optional[float] = Field(default=None, ge=0)
    evidence_photo: Optional[str] = None
    new_promise_date: Optional[date] = None
    failure_reason: Optional[str] = None


class PaymentDecision(BaseModel):
    """Administrator decision on a payment report."""

    status: str = Field(..., description="MATCHED or REJECTED")
    rejection_reason: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rejection_reason", "rejectionReason")
    )


class PaymentReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    asset_id: str
    loan_id: Optional[str] = None
    debtor_name: Optional[str] = None
    collector_id: str
    collector_name: Optional[str] = None
    submitted_at: datetime
    payment_method: str
    payment_outcome: str
    paid_amount: float
    promise_amount: Optional[float] = None
    evidence_photo: Optional[str] = None
    new_promise_date: Optional[date] = None
    failure_reason: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None


class PaymentReportEnvelope(BaseModel):
    success: bool = True
    data: PaymentReportResponse


class PaymentReportListResponse(BaseModel):
    success: bool = True
    data: List[PaymentReportResponse]
    count: int


class ValidationCounts(BaseModel):
    pending_visits: int
    suspicious_visits: int
    pending_payments: int


class ValidationCountsResponse(BaseModel):
    success: bool = True
    data: ValidationCounts
