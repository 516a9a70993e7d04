"""
Shared API Schemas

Request bodies forbid unknown keys, so a client sending a misspelled field
gets a 422 instead of a silently ignored value. Responses are read straight
off ORM rows and drop whatever columns they do not declare.

Listing endpoints share PageInfo so every paginated body carries the same
total/page/page_size/total_pages keys.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """Request body: unknown keys rejected, strings stripped."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """Response body built from ORM rows or plain dicts."""

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class PageInfo(StrictResponse):
    """Pagination fields; pages are 1-based and total_pages is 0 for no rows."""

    total: int
    page: int
    page_size: int
    total_pages: int


class ErrorDetail(StrictResponse):
    """Body written by the service error handler for every 4xx/5xx."""

    error: str
    message: str
    error_id: str
    details: Optional[dict] = None
    timestamp: datetime


class SuccessResponse(StrictResponse):
    success: bool = True
    message: Optional[str] = None


# OpenAPI entries for service errors raised by user-scoped routers
SERVICE_ERROR_RESPONSES = {
    404: {"model": ErrorDetail, "description": "Unknown or foreign resource"},
    409: {"model": ErrorDetail, "description": "Conflicting state"},
}
