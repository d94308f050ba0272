"""
Request and response schemas for the asset registry endpoints.

Bank staff send data using the Indonesian field names of the SPK export,
older clients use camelCase English names; both are accepted on input.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from watukobu.models.enums import AssetStatus, SpkStatus
from watukobu.utils.bank_import import parse_amount, parse_date

TEXT_FIELDS = (
    "loan_id", "debtor_name", "creditor_name", "branch", "region", "credit_type",
    "collateral_address", "identity_address", "office_address", "phone", "phone2",
    "office_phone", "emergency_name", "emergency_phone", "emergency_address", "collector_id",
)

AMOUNT_FIELDS = (
    "initial_plafond", "principal_balance", "interest_arrears", "penalty_arrears",
    "principal_arrears", "total_arrears", "arrears_paid", "total_payoff",
)


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class AssetFields(BaseModel):
    """Writable asset fields shared by create and update."""

    model_config = ConfigDict(populate_by_name=True)

    debtor_name: Optional[str] = Field(
        default=None, validation_alias=_aliases("debtor_name", "debtorName", "namaDebitur")
    )
    creditor_name: Optional[str] = Field(
        default=None, validation_alias=_aliases("creditor_name", "creditorName", "namaKreditur")
    )
    branch: Optional[str] = Field(
        default=None, validation_alias=_aliases("branch", "kantorCabang")
    )
    region: Optional[str] = Field(
        default=None, validation_alias=_aliases("region", "kanwil")
    )
    spk_status: Optional[SpkStatus] = Field(
        default=None, validation_alias=_aliases("spk_status", "spkStatus", "kelolaanTerbitSpk")
    )
    credit_type: Optional[str] = Field(
        default=None, validation_alias=_aliases("credit_type", "creditType", "jenisKredit")
    )
    collateral_address: Optional[str] = Field(
        default=None, validation_alias=_aliases("collateral_address", "collateralAddress", "alamatAgunan")
    )
    identity_address: Optional[str] = Field(
        default=None, validation_alias=_aliases("identity_address", "identityAddress", "alamatKtpDebitur")
    )
    office_address: Optional[str] = Field(
        default=None, validation_alias=_aliases("office_address", "officeAddress", "alamatKantorDebitur")
    )
    phone: Optional[str] = Field(
        default=None, validation_alias=_aliases("phone", "nomorHp1Debitur")
    )
    phone2: Optional[str] = Field(
        default=None, validation_alias=_aliases("phone2", "nomorHp2Debitur")
    )
    office_phone: Optional[str] = Field(
        default=None, validation_alias=_aliases("office_phone", "officePhone", "nomorTeleponKantor")
    )
    emergency_name: Optional[str] = Field(
        default=None, validation_alias=_aliases("emergency_name", "emergencyName", "namaEmergencyKontak")
    )
    emergency_phone: Optional[str] = Field(
        default=None, validation_alias=_aliases("emergency_phone", "emergencyPhone", "nomorTeleponEmergency")
    )
    emergency_address: Optional[str] = Field(
        default=None, validation_alias=_aliases("emergency_address", "emergencyAddress", "alamatEmergencyKontak")
    )
    initial_plafond: Optional[float] = Field(
        default=None, validation_alias=_aliases("initial_plafond", "initialPlafond", "plafondAwal")
    )
    realization_date: Optional[date] = Field(
        default=None, validation_alias=_aliases("realization_date", "realizationDate", "tanggalRealisasi")
    )
    maturity_date: Optional[date] = Field(
        default=None, validation_alias=_aliases("maturity_date", "maturityDate", "tanggalJatuhTempo")
    )
    principal_balance: Optional[float] = Field(
        default=None, validation_alias=_aliases("principal_balance", "principalBalance", "saldoPokok")
    )
    interest_arrears: Optional[float] = Field(
        default=None, validation_alias=_aliases("interest_arrears", "interestArrears", "tunggakanBunga")
    )
    penalty_arrears: Optional[float] = Field(
        default=None, validation_alias=_aliases("penalty_arrears", "penaltyArrears", "tunggakanDenda")
    )
    principal_arrears: Optional[float] = Field(
        default=None, validation_alias=_aliases("principal_arrears", "principalArrears", "tunggakanAngsuran")
    )
    total_arrears: Optional[float] = Field(
        default=None, validation_alias=_aliases("total_arrears", "totalArrears", "totalTunggakan")
    )
    arrears_paid: Optional[float] = Field(
        default=None, validation_alias=_aliases("arrears_paid", "arrearsPaid", "lunasTunggakan")
    )
    total_payoff: Optional[float] = Field(
        default=None, validation_alias=_aliases("total_payoff", "totalPayoff", "lunasKredit")
    )
    status: Optional[AssetStatus] = Field(default=None)
    location_lat: Optional[float] = Field(
        default=None, validation_alias=_aliases("location_lat", "locationLat", "lat")
    )
    location_lng: Optional[float] = Field(
        default=None, validation_alias=_aliases("location_lng", "locationLng", "lng")
    )
    collector_id: Optional[str] = Field(
        default=None, validation_alias=_aliases("collector_id", "collectorId")
    )

    # Spreadsheet rows carry numbers where text is expected and blank cells
    @field_validator(*TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return v
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        if isinstance(v, (int, float)):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(*AMOUNT_FIELDS, mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        """Blank or unreadable amounts count as zero; "Rp 1.500.000" is understood."""
        if not isinstance(v, str):
            return v
        try:
            return float(v.strip())
        except ValueError:
            return parse_amount(v)

    @field_validator("realization_date", "maturity_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        if not v.strip():
            return None
        return parse_date(v) or v

    @field_validator("spk_status", "status", "location_lat", "location_lng", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AssetCreate(AssetFields):
    """Request schema for creating or importing an asset."""

    loan_id: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("loan_id", "loanId", "nomorAccount"),
        description="Bank account number of the loan",
    )


class AssetUpdate(AssetFields):
    """Partial update; only fields present in the request are written."""

    loan_id: Optional[str] = Field(
        default=None, validation_alias=_aliases("loan_id", "loanId", "nomorAccount")
    )


class AssetFilter(BaseModel):
    """Query filters for listing assets."""

    collector_id: Optional[str] = None
    unassigned: bool = False
    branch: Optional[str] = None
    spk_status: Optional[SpkStatus] = None
    status: Optional[AssetStatus] = None
    min_arrears: Optional[float] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0


class CollectorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class AssetResponse(BaseModel):
    """Asset as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    loan_id: str
    debtor_name: str
    creditor_name: Optional[str] = None
    branch: Optional[str] = None
    region: Optional[str] = None
    spk_status: str
    credit_type: Optional[str] = None
    collateral_address: Optional[str] = None
    identity_address: Optional[str] = None
    office_address: Optional[str] = None
    phone: Optional[str] = None
    phone2: Optional[str] = None
    office_phone: Optional[str] = None
    emergency_name: Optional[str] = None
    emergency_phone: Optional[str] = None
    emergency_address: Optional[str] = None
    initial_plafond: float = 0.0
    realization_date: Optional[date] = None
    maturity_date: Optional[date] = None
    principal_balance: float = 0.0
    interest_arrears: float = 0.0
    penalty_arrears: float = 0.0
    principal_arrears: float = 0.0
    total_arrears: float = 0.0
    arrears_paid: float = 0.0
    total_payoff: float = 0.0
    status: str
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    collector_id: Optional[str] = None
    collector: Optional[CollectorSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssetEnvelope(BaseModel):
    success: bool = True
    data: AssetResponse


class AssetListResponse(BaseModel):
    success: bool = True
    data: List[AssetResponse]
    count: int


class AssetStats(BaseModel):
    total: int
    total_arrears: float
    active_count: int
    passive_count: int
    unassigned_count: int


class AssetStatsResponse(BaseModel):
    success: bool = True
    data: AssetStats


class BulkImportRequest(BaseModel):
    """Rows already mapped to asset fields, e.g. from a spreadsheet upload."""

    assets: List[Dict[str, Any]] = Field(..., description="Asset rows to import")


class BankCsvImportRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Raw CSV export from the bank")


class ImportResult(BaseModel):
    success: bool = True
    imported_count: int
    skipped_count: int
    error_count: int
    errors: List[str] = Field(default_factory=list)
    message: str
    original_row_count: Optional[int] = None


class BulkDeleteRequest(BaseModel):
    asset_ids: List[str] = Field(..., min_length=1)


class BulkDeleteResponse(BaseModel):
    success: bool = True
    deleted_count: int
