"""
Structured logging configuration with correlation IDs and request identity.
"""
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

from watukobu.core.config import get_settings

# Context variables for request-scoped data
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)
user_role_var: ContextVar[Optional[str]] = ContextVar('user_role', default=None)
operation_var: ContextVar[Optional[Dict[str, Any]]] = ContextVar('operation', default=None)


def add_correlation_id(
    logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add correlation ID to log events."""
    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def add_request_context(
    logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add the calling user's identity to log events."""
    user_id = user_id_var.get()
    if user_id:
        event_dict.setdefault("user_id", user_id)

    user_role = user_role_var.get()
    if user_role:
        event_dict.setdefault("user_role", user_role)

    return event_dict


def add_service_context(
    logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add service context to log events."""
    settings = get_settings()
    event_dict["service"] = settings.service_name
    event_dict["version"] = settings.service_version
    event_dict["environment"] = settings.environment
    return event_dict


def add_performance_context(
    logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add timing of the enclosing operation to log events."""
    operation = operation_var.get()
    if operation:
        event_dict.setdefault("operation", operation["name"])
        event_dict["operation_duration_ms"] = round((time.time() - operation["start"]) * 1000, 2)
    return event_dict


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Overrides the configured level (e.g. "DEBUG")
    """
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_service_context,
            add_request_context,
            add_correlation_id,
            add_performance_context,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def get_business_logger() -> structlog.stdlib.BoundLogger:
    """Get a business event logger instance."""
    return structlog.get_logger("business")


def get_performance_logger() -> structlog.stdlib.BoundLogger:
    """Get a performance logger instance."""
    return structlog.get_logger("performance")


def new_correlation_id() -> str:
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> Optional[str]:
    """Get correlation ID from current context."""
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None, user_id: Optional[str] = None,
                        user_role: Optional[str] = None):
    """
    Context manager for setting request correlation context.

    Args:
        correlation_id: Correlation ID for the request
        user_id: ID of the calling user as forwarded by the gateway
        user_role: Role of the calling user, once resolved
    """
    tokens = []
    if correlation_id:
        tokens.append((correlation_id_var, correlation_id_var.set(correlation_id)))
    if user_id:
        tokens.append((user_id_var, user_id_var.set(user_id)))
    if user_role:
        tokens.append((user_role_var, user_role_var.set(user_role)))

    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def bind_user(user_id: str, role: str) -> None:
    """Record the resolved user for the rest of the request."""
    user_id_var.set(user_id)
    user_role_var.set(role)


@contextmanager
def performance_timing(operation_name: str):
    """
    Context manager for timing operations.

    Args:
        operation_name: Name of the operation being timed
    """
    start_time = time.time()
    token = operation_var.set({"name": operation_name, "start": start_time})
    logger = get_performance_logger()

    try:
        yield
    finally:
        duration = time.time() - start_time
        logger.debug(
            "Operation completed",
            operation=operation_name,
            duration_ms=round(duration * 1000, 2),
        )
        operation_var.reset(token)


def log_business_event(event_type: str, **kwargs):
    """
    Log a structured business event.

    Args:
        event_type: Type of business event
        **kwargs: Additional event data
    """
    logger = get_business_logger()
    logger.info("Business event", event_type=event_type, **kwargs)
