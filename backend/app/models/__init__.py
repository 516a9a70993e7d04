"""Pydantic models for the application."""

from app.models.base import (
    ErrorDetail,
    PageInfo,
    StrictRequest,
    StrictResponse,
    SuccessResponse,
)
from app.models.question import (
    QuestionCreate,
    QuestionFilters,
    QuestionResponse,
    QuestionUpdate,
)
from app.models.review import (
    PracticeSessionResponse,
    SessionSubmitResponse,
    SubmitReviewRequest,
)
from app.models.tag import TagCreate, TagResponse, TagUpdate

__all__ = [
    "ErrorDetail",
    "PageInfo",
    "StrictRequest",
    "StrictResponse",
    "SuccessResponse",
    "QuestionCreate",
    "QuestionFilters",
    "QuestionResponse",
    "QuestionUpdate",
    "PracticeSessionResponse",
    "SessionSubmitResponse",
    "SubmitReviewRequest",
    "TagCreate",
    "TagResponse",
    "TagUpdate",
]
