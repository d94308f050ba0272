"""
Request middleware: correlation IDs, gateway identity in log context, and timing.
"""
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from watukobu.core.logging import (
    correlation_context,
    get_correlation_id,
    get_logger,
    new_correlation_id,
    performance_timing,
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
USER_HEADER = "X-User-ID"

# Health checks, logged at debug level
QUIET_PATH_SUFFIXES = ("/health", "/health/detailed")


def _elapsed_ms(start: float) -> float:
    return round((time.time() - start) * 1000, 2)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a correlation ID.

    The ID comes from the caller's X-Correlation-ID header or is generated,
    is bound to the log context together with the gateway's X-User-ID, and
    is echoed on the response. Unhandled errors become a 500 in the same
    envelope the API exception handler uses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
        path = request.url.path
        log = logger.debug if path.endswith(QUIET_PATH_SUFFIXES) else logger.info

        with correlation_context(correlation_id=correlation_id, user_id=request.headers.get(USER_HEADER)):
            log("Request started", method=request.method, path=path)
            start = time.time()

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "Request failed",
                    method=request.method,
                    path=path,
                    error=str(e),
                    processing_time_ms=_elapsed_ms(start),
                    exc_info=True,
                )
                return JSONResponse(
                    status_code=500,
                    content={
                        "success": False,
                        "error": "Internal server error",
                        "error_code": "INTERNAL_ERROR",
                        "correlation_id": correlation_id,
                        "context": {},
                    },
                    headers={CORRELATION_HEADER: correlation_id},
                )

            log(
                "Request completed",
                method=request.method,
                path=path,
                status_code=response.status_code,
                processing_time_ms=_elapsed_ms(start),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response


class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """Warn about slow requests and report processing time in X-Processing-Time-MS."""

    def __init__(self, app, slow_request_threshold_ms: float = 1000.0):
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.time()
        with performance_timing(f"{request.method} {request.url.path}"):
            response = await call_next(request)
        elapsed = _elapsed_ms(start)

        if elapsed > self.slow_request_threshold_ms:
            logger.warning(
                "Slow request detected",
                method=request.method,
                path=request.url.path,
                processing_time_ms=elapsed,
                threshold_ms=self.slow_request_threshold_ms,
                correlation_id=get_correlation_id(),
            )

        response.headers["X-Processing-Time-MS"] = str(elapsed)
        return response
