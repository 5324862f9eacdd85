"""
Intake error kinds and the single boundary handler for everything else.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels attached to logged faults."""
    MEDIUM = "medium"     # timeouts, dropped connections, usually transient
    HIGH = "high"         # database failures and anything unrecognised


def determine_severity(error: Exception) -> ErrorSeverity:
    """Grade a fault by its type."""
    if isinstance(error, (TimeoutError, ConnectionError)):
        return ErrorSeverity.MEDIUM
    return ErrorSeverity.HIGH


class IntakeError(Exception):
    """A booking request was refused; ``errors`` is safe to return to the caller."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class IntakeValidationError(IntakeError):
    """One or more field problems, always the complete list."""


class SchedulePolicyError(IntakeError):
    """A single scheduling rule violation."""

    def __init__(self, message: str):
        super().__init__([message])


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> None:
    """Log a fault with its traceback and request context."""
    context = context or {}
    severity = severity or determine_severity(error)
    logger.error(
        "unhandled_error",
        error_type=type(error).__name__,
        error=str(error),
        severity=severity.value,
        exc_info=error,
        **context,
    )


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the app-wide error boundary."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = "Not Found" if exc.status_code == 404 else exc.detail
        return JSONResponse({"error": detail}, status_code=exc.status_code, headers=exc.headers)

    # Faults are turned into responses inside the middleware stack, so CORS and
    # request-id headers still reach the client
    @app.middleware("http")
    async def error_boundary(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            log_error(
                exc,
                {
                    "endpoint": request.url.path,
                    "method": request.method,
                    "correlation_id": getattr(request.state, "correlation_id", ""),
                },
            )
            message = "Internal Server Error" if settings.is_production else str(exc)
            return JSONResponse({"error": message}, status_code=500)
