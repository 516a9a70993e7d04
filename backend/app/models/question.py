"""
Question API Models (Pydantic)

Request/response schemas for question CRUD, practice listings and
JSON import/export.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    The corresponding SQLAlchemy model is Question in app/db/models.py.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from app.models.base import PageInfo, StrictRequest, StrictResponse
from app.models.tag import TagResponse


# ===========================================
# CRUD
# ===========================================


class QuestionCreate(StrictRequest):
    """
    Request to create a question.

    Tag names are linked only when a tag with that name already exists for
    the user; unknown names are ignored.
    """

    content: str = Field(..., min_length=1)
    answer: str
    analysis: Optional[str] = None
    remark: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=100)
    images: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class QuestionUpdate(StrictRequest):
    """
    Partial question update.

    When tags is given (even empty) the question's tag links are replaced.
    """

    content: Optional[str] = None
    answer: Optional[str] = None
    analysis: Optional[str] = None
    remark: Optional[str] = None
    subject: Optional[str] = Field(None, max_length=100)
    images: Optional[list[str]] = None
    mastery_level: Optional[int] = Field(None, ge=0, le=5)
    tags: Optional[list[str]] = None


class QuestionResponse(StrictResponse):
    """Full question representation including the review projection."""

    id: str
    content: str
    answer: str
    analysis: Optional[str] = None
    remark: Optional[str] = None
    subject: str
    images: list[str] = Field(default_factory=list)
    mastery_level: int
    next_review_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None
    practice_count: int = 0
    total_time_spent: int = 0
    tags: list[TagResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None


class QuestionListResponse(PageInfo):
    """Paginated question listing."""

    data: list[QuestionResponse]


class QuestionSummary(StrictResponse):
    """Short question reference embedded in review history rows."""

    id: str
    content: str
    subject: str
    mastery_level: int


# ===========================================
# Practice Filters
# ===========================================


class QuestionFilters(StrictRequest):
    """
    Filters shared by practice selection and listings.

    All filters are optional and combined with AND. Multi-valued filters
    match any of their values (subject in {A, B}; any tag named A or B).
    """

    subjects: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    min_mastery_level: Optional[int] = Field(None, ge=0, le=5)
    max_mastery_level: Optional[int] = Field(None, ge=0, le=5)

    @model_validator(mode="after")
    def check_mastery_range(self) -> "QuestionFilters":
        """Reject an inverted mastery range."""
        if (
            self.min_mastery_level is not None
            and self.max_mastery_level is not None
            and self.min_mastery_level > self.max_mastery_level
        ):
            raise ValueError("min_mastery_level must not exceed max_mastery_level")
        return self


class RandomPickRequest(QuestionFilters):
    """Request a random selection of question ids."""

    limit: int = Field(20, ge=1, le=500)


class RandomPickResponse(StrictResponse):
    """Randomly picked question ids. Review state is not touched."""

    question_ids: list[str]


# ===========================================
# Import / Export
# ===========================================


class ExportedQuestion(StrictResponse):
    """A question in the portable JSON export format."""

    content: str
    answer: str
    analysis: Optional[str] = None
    remark: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    subject: str
    tags: list[str] = Field(default_factory=list)

    # Scheduling metadata (only with include_meta)
    mastery_level: Optional[int] = None
    next_review_at: Optional[datetime] = None
    last_reviewed_at: Optional[datetime] = None


class ExportData(StrictResponse):
    """Full export document."""

    version: str
    exported_at: datetime
    total_questions: int
    include_meta: bool
    questions: list[ExportedQuestion]


class ImportRequest(StrictRequest):
    """Questions to import, in the export format."""

    questions: list[ExportedQuestion]
    include_meta: bool = False


class ImportResult(StrictResponse):
    """
    Outcome of a bulk import.

    Import continues past individual failures; each failure is described
    in errors.
    """

    success: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
