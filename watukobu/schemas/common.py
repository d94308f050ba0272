"""Schemas shared across endpoints."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    success: bool = Field(default=False)
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(default=None, description="Error code")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    context: Dict[str, Any] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


COMMON_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or unknown user"},
    403: {"model": ErrorResponse, "description": "Role not allowed"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}
