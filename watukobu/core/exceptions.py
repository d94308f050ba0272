"""
Custom exception classes for the Watu Kobu Collections Service.
"""
from typing import Optional, Any, Dict
import uuid

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from watukobu.core.logging import get_correlation_id, get_logger

logger = get_logger(__name__)


class BaseAPIException(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())[:8]
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "success": False,
            "error": self.detail,
            "error_code": self.error_code,
            "correlation_id": self.correlation_id,
            "context": self.context,
        }


class ValidationError(BaseAPIException):
    """Exception for request data the service cannot act on."""

    def __init__(
        self,
        detail: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        **context
    ):
        error_code = "WK_001"
        if field:
            error_code = f"WK_001_{field.upper()}"

        context_dict = {"field": field, "value": value, **context}

        super().__init__(
            status_code=status_code,
            detail=detail,
            error_code=error_code,
            context=context_dict,
        )


class BusinessRuleError(BaseAPIException):
    """Exception for business rule violations."""

    def __init__(
        self,
        detail: str,
        rule_name: Optional[str] = None,
        entity_id: Optional[str] = None,
        **context
    ):
        error_code = "WK_002"
        if rule_name:
            error_code = f"WK_002_{rule_name.upper()}"

        context_dict = {"rule_name": rule_name, "entity_id": entity_id, **context}

        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code,
            context=context_dict,
        )


class NotFoundError(BaseAPIException):
    """Exception for missing records."""

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found",
            error_code=f"WK_003_{entity.upper().replace(' ', '_')}_NOT_FOUND",
            context={"entity": entity, "entity_id": entity_id},
        )


class ConflictError(BaseAPIException):
    """Exception for writes that collide with existing data."""

    def __init__(self, detail: str, **context):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="WK_004",
            context=context,
        )


class AuthenticationError(BaseAPIException):
    """Exception for requests without a usable identity."""

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="WK_005",
        )


class PermissionDeniedError(BaseAPIException):
    """Exception for identities whose role does not allow the action."""

    def __init__(self, detail: str = "Forbidden", role: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="WK_006",
            context={"role": role},
        )


class InternalServerError(BaseAPIException):
    """Exception for unexpected internal errors."""

    def __init__(self, detail: str = "An unexpected internal error occurred"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_SERVER_ERROR",
        )


# Database Exceptions
class DatabaseError(Exception):
    """Exception for database-related errors."""

    def __init__(self, detail: str, operation: Optional[str] = None, **context):
        self.operation = operation
        if operation:
            context["operation"] = operation
        self.context = context
        super().__init__(detail)


# Non-API context exceptions
class ImportRowError(Exception):
    """Exception for a single unusable row during bulk import."""

    def __init__(self, detail: str, row: Optional[int] = None, loan_id: Optional[str] = None):
        self.row = row
        self.loan_id = loan_id
        message = detail
        if loan_id:
            message = f"{loan_id}: {detail}"
        super().__init__(message)


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Render service exceptions with their error code and correlation ID."""
    if exc.status_code >= 500:
        logger.error("API error", error_code=exc.error_code, detail=exc.detail, path=request.url.path)
    else:
        logger.info("API error", error_code=exc.error_code, status_code=exc.status_code,
                    path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={**(exc.headers or {}), "X-Correlation-ID": exc.correlation_id},
    )
