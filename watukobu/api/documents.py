"""
Document API endpoints: the repository, collection letters and weekly exports.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from watukobu.core.dependencies import get_document_service
from watukobu.core.logging import get_logger
from watukobu.core.security import require_admin, require_management
from watukobu.models.database import User
from watukobu.models.enums import DocumentType
from watukobu.schemas.common import COMMON_RESPONSES, ErrorResponse, MessageResponse
from watukobu.schemas.document import (
    DocumentCountsResponse, DocumentCreate, DocumentDetail, DocumentEnvelope, DocumentListResponse,
    DocumentResponse, GeneratedLetterResponse, LetterRequest, ReportPeriod, WeeklyReportResponse,
)
from watukobu.services.document_service import DocumentService

logger = get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

INTERNAL_ERROR = {"error": "Internal server error", "error_code": "INTERNAL_ERROR"}
NOT_FOUND = {404: {"model": ErrorResponse, "description": "Document not found"}}


def _period(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
) -> ReportPeriod:
    return ReportPeriod(start_date=start_date, end_date=end_date)


def _attachment(content: str, filename: str, media_type: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get(
    "",
    response_model=DocumentListResponse,
    responses=COMMON_RESPONSES,
    summary="List documents",
)
async def list_documents(
    doc_type: Optional[DocumentType] = Query(default=None, alias="type"),
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentListResponse:
    try:
        documents = await document_service.list_documents(doc_type)
        return DocumentListResponse(
            data=[DocumentResponse.model_validate(d) for d in documents],
            count=len(documents),
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error listing documents", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "",
    response_model=DocumentEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses=COMMON_RESPONSES,
    summary="Register an uploaded document",
)
async def add_document(
    data: DocumentCreate,
    user: User = Depends(require_admin),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentEnvelope:
    try:
        document = await document_service.add_document(data)
        return DocumentEnvelope(data=DocumentDetail.model_validate(document))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error adding document", title=data.title, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/counts",
    response_model=DocumentCountsResponse,
    responses=COMMON_RESPONSES,
    summary="Document counts per type",
)
async def document_counts(
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentCountsResponse:
    try:
        return DocumentCountsResponse(data=await document_service.document_counts())
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error counting documents", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/letters",
    response_model=GeneratedLetterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse, "description": "Asset not found"}, **COMMON_RESPONSES},
    summary="Generate a collection letter",
    description="Render a surat tugas or somasi I/II/III letter and register it in the repository.",
)
async def generate_letter(
    request: LetterRequest,
    user: User = Depends(require_admin),
    document_service: DocumentService = Depends(get_document_service),
) -> GeneratedLetterResponse:
    try:
        letter = await document_service.render_letter(request.letter_type, request.asset_id)
        return GeneratedLetterResponse(data=letter)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error generating letter",
            letter_type=request.letter_type,
            asset_id=request.asset_id,
            error=str(e),
        )
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/exports/visits.csv",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid date range"}, **COMMON_RESPONSES},
    summary="Export approved visits as CSV",
)
async def export_visit_csv(
    period: ReportPeriod = Depends(_period),
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
):
    try:
        content = await document_service.export_visit_csv(period)
        return _attachment(content, "visit_reports.csv", "text/csv")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error exporting visit CSV", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/exports/bank-weekly.csv",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid date range"}, **COMMON_RESPONSES},
    summary="Export approved visits in the bank's weekly format",
)
async def export_bank_csv(
    period: ReportPeriod = Depends(_period),
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
):
    try:
        filename, content = await document_service.export_bank_csv(period)
        return _attachment(content, filename, "text/csv")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error exporting bank CSV", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.post(
    "/weekly-report",
    response_model=WeeklyReportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid date range"}, **COMMON_RESPONSES},
    summary="Generate the weekly validation report",
    description="Render approved visits in the period as a printable report and store it as an OTHERS document.",
)
async def weekly_report(
    period: ReportPeriod,
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
) -> WeeklyReportResponse:
    try:
        return WeeklyReportResponse(data=await document_service.generate_weekly_report(period))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error generating weekly report", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/{document_id}",
    response_model=DocumentEnvelope,
    responses={**NOT_FOUND, **COMMON_RESPONSES},
    summary="Get document",
)
async def get_document(
    document_id: str,
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentEnvelope:
    try:
        document = await document_service.get_document(document_id)
        return DocumentEnvelope(data=DocumentDetail.model_validate(document))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error fetching document", document_id=document_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get(
    "/{document_id}/download",
    response_class=StreamingResponse,
    responses={**NOT_FOUND, **COMMON_RESPONSES},
    summary="Download a generated document",
)
async def download_document(
    document_id: str,
    user: User = Depends(require_management),
    document_service: DocumentService = Depends(get_document_service),
):
    try:
        document = await document_service.get_document(document_id)
        if document.content is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "Document has no stored content", "error_code": "NO_CONTENT"},
            )
        filename = (document.url or document.title).rsplit("/", 1)[-1]
        return _attachment(document.content, filename, "text/plain; charset=utf-8")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error downloading document", document_id=document_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    responses={**NOT_FOUND, **COMMON_RESPONSES},
    summary="Delete document",
)
async def delete_document(
    document_id: str,
    user: User = Depends(require_admin),
    document_service: DocumentService = Depends(get_document_service),
) -> MessageResponse:
    try:
        await document_service.delete_document(document_id)
        return MessageResponse(message="Document deleted")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error deleting document", document_id=document_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)
