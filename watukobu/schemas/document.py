"""
Request and response schemas for the document repository and generated reports.
"""
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from watukobu.models.enums import DocumentType, LetterType


class DocumentCreate(BaseModel):
    """Request schema for registering a document in the repository."""

    title: str = Field(..., min_length=1, max_length=255)
    type: DocumentType = DocumentType.OTHERS
    related_debtor: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("related_debtor", "relatedDebtor")
    )
    asset_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("asset_id", "assetId"))
    upload_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("upload_date", "uploadDate")
    )
    file_size: Optional[str] = Field(default=None, validation_alias=AliasChoices("file_size", "fileSize"))
    url: Optional[str] = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    type: str
    related_debtor: Optional[str] = None
    asset_id: Optional[str] = None
    upload_date: date
    file_size: Optional[str] = None
    url: Optional[str] = None
    letter_number: Optional[str] = None
    created_at: datetime


class DocumentDetail(DocumentResponse):
    content: Optional[str] = None


class DocumentEnvelope(BaseModel):
    success: bool = True
    data: DocumentDetail


class DocumentListResponse(BaseModel):
    success: bool = True
    data: List[DocumentResponse]
    count: int


class DocumentCounts(BaseModel):
    total: int
    by_type: Dict[str, int]


class DocumentCountsResponse(BaseModel):
    success: bool = True
    data: DocumentCounts


class LetterRequest(BaseModel):
    """Request schema for generating a collection letter."""

    letter_type: str = Field(
        default=LetterType.SOMASI_1.value, validation_alias=AliasChoices("letter_type", "letterType", "type")
    )
    asset_id: str = Field(..., validation_alias=AliasChoices("asset_id", "assetId"))


class GeneratedLetter(BaseModel):
    letter_number: str
    letter_type: str
    title: str
    content: str
    document: DocumentResponse


class GeneratedLetterResponse(BaseModel):
    success: bool = True
    data: GeneratedLetter


class ReportPeriod(BaseModel):
    """Inclusive date range of approved visits to export."""

    start_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    end_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))


class WeeklyReport(BaseModel):
    filename: str
    report_count: int
    content: str
    document: DocumentResponse


class WeeklyReportResponse(BaseModel):
    success: bool = True
    data: WeeklyReport
