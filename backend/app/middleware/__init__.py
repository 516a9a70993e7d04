"""
Middleware Package

Provides error handling for the FastAPI app and the service exception
classes raised by the service layer.

Usage:
    from app.middleware import setup_error_handling, NotFoundError

    setup_error_handling(app, debug=settings.DEBUG)
"""

from app.middleware.error_handling import (
    ConflictError,
    ErrorHandlingMiddleware,
    InvalidArgumentError,
    InvalidStateError,
    NoCandidatesError,
    NotFoundError,
    ServiceError,
    setup_error_handling,
)

__all__ = [
    "ConflictError",
    "ErrorHandlingMiddleware",
    "InvalidArgumentError",
    "InvalidStateError",
    "NoCandidatesError",
    "NotFoundError",
    "ServiceError",
    "setup_error_handling",
]
