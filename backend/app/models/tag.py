"""
Tag API Models (Pydantic)

Request/response schemas for user-scoped tags.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.enums.review import TagType
from app.models.base import StrictRequest, StrictResponse


class TagCreate(StrictRequest):
    """Request to create a custom tag."""

    name: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)


class TagUpdate(StrictRequest):
    """Partial tag update. Omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)


class TagSummary(StrictResponse):
    """Tag reference embedded in question payloads."""

    id: str
    name: str


class TagResponse(StrictResponse):
    """Full tag representation."""

    id: str
    name: str
    category: str
    color: str
    type: TagType
    created_at: datetime


class TagCleanupResult(StrictResponse):
    """Result of removing CUSTOM tags no question uses."""

    deleted_count: int
    message: str
