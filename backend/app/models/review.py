"""
Review System API Models (Pydantic)

Request/response schemas for review submission, practice sessions and
statistics derived from the review log.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    The corresponding SQLAlchemy models (ReviewLog, PracticeSession,
    PracticeRecord) live in app/db/models.py.

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.config import settings
from app.enums.review import (
    NavigateDirection,
    PracticeSessionStatus,
    ReviewStatus,
)
from app.models.base import PageInfo, StrictRequest, StrictResponse
from app.models.question import QuestionFilters, QuestionSummary
from app.models.tag import TagSummary


# ===========================================
# Review Submission
# ===========================================


class SubmitReviewRequest(StrictRequest):
    """
    Record the outcome of reviewing one question.

    duration is the time spent in seconds; negative values are treated as 0.
    """

    question_id: str
    status: ReviewStatus
    note: Optional[str] = None
    duration: Optional[int] = None


class ManualReviewRequest(StrictRequest):
    """Mark a question as reviewed from the question bank."""

    question_id: str
    status: ReviewStatus
    note: Optional[str] = None


class ReviewResult(StrictResponse):
    """New review state of a question after a submission."""

    question_id: str
    mastery_level: int
    next_review_at: datetime
    message: str


class StatusOption(StrictResponse):
    """Selectable review outcome."""

    label: str
    value: ReviewStatus


# ===========================================
# Review History & Stats
# ===========================================


class ReviewLogResponse(StrictResponse):
    """One review log entry."""

    id: str
    question_id: str
    status: ReviewStatus
    note: Optional[str] = None
    duration: int = 0
    created_at: datetime
    question: Optional[QuestionSummary] = None


class ReviewHistoryResponse(PageInfo):
    """Paginated review log for a user."""

    data: list[ReviewLogResponse]


class MasteryBucket(StrictResponse):
    """Number of questions at one mastery level."""

    level: int
    count: int


class ReviewStats(StrictResponse):
    """Overview of a user's question bank."""

    total_questions: int
    due_today: int
    this_week_reviews: int
    mastery_distribution: list[MasteryBucket]


class TodayCount(StrictResponse):
    """Number of questions due now."""

    count: int


class TodayStats(StrictResponse):
    """Reviews recorded since the start of today."""

    total_count: int
    ebbinghaus_count: int
    random_count: int


class HeatmapDay(StrictResponse):
    """Review activity for one day."""

    date: str  # ISO date, UTC
    count: int
    intensity: int  # 0-4


class StreakData(StrictResponse):
    """Consecutive-day review streaks."""

    current_streak: int
    longest_streak: int
    last_review_date: Optional[str] = None
    total_days: int


class CalendarDay(StrictResponse):
    """Review activity for one day of a month view."""

    count: int
    status: ReviewStatus  # Status of the first review seen that day


class QuestionPracticeHistoryItem(StrictResponse):
    """One review of a single question."""

    id: str
    status: ReviewStatus
    note: Optional[str] = None
    created_at: datetime


class QuestionPracticeHistoryResponse(StrictResponse):
    """Paginated review history of a single question."""

    data: list[QuestionPracticeHistoryItem]
    total: int
    total_pages: int


class QuestionPracticeStats(StrictResponse):
    """Aggregated review outcomes of a single question."""

    question_id: str
    total_practice_count: int
    forgotten_count: int
    fuzzy_count: int
    mastered_count: int
    total_time_spent: int
    average_duration: int
    last_practiced_at: Optional[datetime] = None


# ===========================================
# Practice Sessions
# ===========================================


class StartPracticeRequest(QuestionFilters):
    """Start a new practice round with optional filters."""

    limit: int = Field(settings.PRACTICE_DEFAULT_LIMIT, ge=1, le=500)


class ResetPracticeRequest(StrictRequest):
    """Start another round drawn only from due questions."""

    daily_limit: Optional[int] = Field(None, ge=1, le=500)


class UpdateSessionStatusRequest(StrictRequest):
    """Set a session's status."""

    status: PracticeSessionStatus


class NavigateRequest(StrictRequest):
    """Move the session cursor by one."""

    direction: NavigateDirection


class JumpRequest(StrictRequest):
    """Move the session cursor to a specific question."""

    question_id: str


class SessionQuestion(StrictResponse):
    """Question payload inside a practice session."""

    id: str
    content: str
    answer: str
    analysis: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    subject: str
    mastery_level: int
    tags: list[TagSummary] = Field(default_factory=list)


class PracticeSessionResponse(StrictResponse):
    """
    A practice session with its questions in session order.

    total_count is the length of the session's id snapshot, so it stays
    fixed even when some questions have since been deleted and are
    missing from questions.
    """

    id: str
    daily_limit: int
    questions: list[SessionQuestion]
    current_index: int
    status: PracticeSessionStatus
    total_count: int
    finished_count: int


class SessionSubmitResponse(StrictResponse):
    """Session state after a submission."""

    session: PracticeSessionResponse
    is_completed: bool


class DailyPracticeStatus(StrictResponse):
    """Practice progress for today."""

    has_active_session: bool
    active_session_id: Optional[str] = None
    today_completed_rounds: int
    today_total_count: int
    daily_limit: int
    pending_count: int


class PracticeRecordResponse(StrictResponse):
    """Daily practice completion marker."""

    id: str
    date: datetime
    question_ids: list[str]
    count: int
    completed: bool
