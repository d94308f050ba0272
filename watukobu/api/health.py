"""
Health check endpoints for the Watu Kobu Collections Service.
"""
import time
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from watukobu.core.config import settings
from watukobu.core.logging import get_logger
from watukobu.database import check_connection, get_db

router = APIRouter()
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    uptime_seconds: float
    timestamp: datetime
    service_name: str


class DetailedHealthResponse(HealthResponse):
    """Detailed health check response model."""

    checks: dict


def _uptime(request: Request) -> float:
    start_time = getattr(request.app.state, "start_time", time.time())
    return time.time() - start_time


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Returns service status, version, and uptime.
    """
    response = HealthResponse(
        status="healthy",
        version=settings.service_version,
        uptime_seconds=_uptime(request),
        timestamp=datetime.utcnow(),
        service_name=settings.service_name,
    )
    logger.debug("Health check completed", uptime_seconds=response.uptime_seconds)
    return response


@router.get("/health/detailed", response_model=DetailedHealthResponse)
async def detailed_health_check(request: Request, db: Session = Depends(get_db)):
    """
    Detailed health check endpoint.

    Adds a database connectivity check to the basic health information.
    """
    checks = {
        "database": "healthy" if check_connection(db) else "unhealthy",
    }
    overall_status = "healthy" if all(value == "healthy" for value in checks.values()) else "unhealthy"

    response = DetailedHealthResponse(
        status=overall_status,
        version=settings.service_version,
        uptime_seconds=_uptime(request),
        timestamp=datetime.utcnow(),
        service_name=settings.service_name,
        checks=checks,
    )

    logger.info("Detailed health check completed", status=response.status, checks=response.checks)
    return response
