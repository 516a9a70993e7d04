"""
Error Handling

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Service exception classes, one per user-actionable condition

Usage:
    from app.middleware.error_handling import NotFoundError, setup_error_handling

    # Wire into the app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise from services
    raise NotFoundError("Practice session not found")

Exception handling hierarchy:
    - HTTPException: Left to FastAPI's built-in handler
    - ServiceError: Rendered by service_error_handler as structured JSON
      with the exception's status code
    - Exception: Caught by ErrorHandlingMiddleware, sanitized 500

Ownership violations are raised as NotFoundError so that the existence of
another user's rows is not disclosed.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a question, tag or session doesn't exist or belongs to
    another user.
    """

    status_code = 404
    error_code = "not_found"


class InvalidStateError(ServiceError):
    """
    Invalid state error.

    Raised when an operation needs an ACTIVE practice session but the
    session has already ended.
    """

    status_code = 409
    error_code = "invalid_state"


class InvalidArgumentError(ServiceError):
    """
    Invalid argument error.

    Raised when a request is well-formed but refers to something outside
    its scope, e.g. jumping to a question that is not part of the session.
    """

    status_code = 400
    error_code = "invalid_argument"


class NoCandidatesError(ServiceError):
    """
    No eligible questions.

    Raised when starting a practice round finds nothing to practice.
    Clients show an empty state rather than an error page.
    """

    status_code = 422
    error_code = "no_candidates"


class ConflictError(ServiceError):
    """
    Conflict error.

    Raised when creating something that already exists (duplicate tag name).
    """

    status_code = 409
    error_code = "conflict"


# =============================================================================
# Handlers
# =============================================================================


def _error_body(
    error_code: str,
    message: str,
    error_id: str,
    details: Optional[dict] = None,
) -> dict:
    return {
        "error": error_code,
        "message": message,
        "error_id": error_id,
        "details": details,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError as a structured JSON response."""
    error_id = str(uuid4())[:8]
    debug = getattr(request.app.state, "debug_errors", False)

    logger.warning(
        f"[{error_id}] {exc.error_code}: {exc.message}",
        extra={
            "error_id": error_id,
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            exc.error_code,
            exc.message,
            error_id,
            exc.details if debug else None,
        ),
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global catch-all for unexpected exceptions.

    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details unless debug is enabled
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)

        except HTTPException:
            raise

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(
                status_code=500,
                content=_error_body(
                    "internal_server_error",
                    "An unexpected error occurred",
                    error_id,
                    details,
                ),
            )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Whether to include details and stack traces in responses
    """
    app.state.debug_errors = debug
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling enabled (debug={debug})")
