"""Main FastAPI application for the Watu Kobu Collections Service."""

import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from watukobu.api.assets import router as assets_router
from watukobu.api.assignments import router as assignments_router
from watukobu.api.dashboard import router as dashboard_router
from watukobu.api.documents import router as documents_router
from watukobu.api.health import router as health_router
from watukobu.api.reports import router as reports_router
from watukobu.api.users import router as users_router
from watukobu.core.config import get_settings
from watukobu.core.exceptions import BaseAPIException, api_exception_handler
from watukobu.core.logging import get_logger, setup_logging
from watukobu.core.middleware import CorrelationIDMiddleware, PerformanceMonitoringMiddleware
from watukobu.database import init_db

# Initialize logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()

app = FastAPI(
    title="Watu Kobu Collections Service",
    description="Debt collection case management: assignment, field evidence validation, dashboards and letters",
    version=settings.service_version,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Starlette wraps middleware in reverse order; the correlation middleware must be outermost
app.add_middleware(
    PerformanceMonitoringMiddleware,
    slow_request_threshold_ms=settings.slow_request_threshold_ms,
)
app.add_middleware(CorrelationIDMiddleware)

if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_exception_handler(BaseAPIException, api_exception_handler)

API_PREFIX = "/api/v1"
app.include_router(health_router, prefix=API_PREFIX, tags=["health"])
app.include_router(assets_router, prefix=API_PREFIX)
app.include_router(assignments_router, prefix=API_PREFIX)
app.include_router(reports_router, prefix=API_PREFIX)
app.include_router(dashboard_router, prefix=API_PREFIX)
app.include_router(documents_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    app.state.start_time = time.time()
    logger.info("Starting Watu Kobu Collections Service", version=settings.service_version)
    init_db()
    logger.info("Service startup complete", environment=settings.environment)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Watu Kobu Collections Service")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "watukobu.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
