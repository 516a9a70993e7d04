"""
SQLAlchemy Database Models

These models define the relational schema for Fixit, a spaced-repetition
mistake notebook. Users are opaque identifiers resolved by the auth layer.

Tables:
- tags: User-scoped tag definitions
- question_tags: Many-to-many link between questions and tags
- questions: User-owned flashcards with a cached review projection
- review_logs: Append-only ledger of review outcomes
- practice_sessions: Ordered snapshots of questions reviewed as one round
- practice_records: One row per user and day marking practice as finished

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    The corresponding Pydantic schemas live in app/models/.

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import datetime, timezone
from typing import List, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.enums.review import PracticeSessionStatus, TagType


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    """Return a new string UUID primary key."""
    return str(uuid.uuid4())


question_tags = Table(
    "question_tags",
    Base.metadata,
    Column(
        "question_id",
        String(36),
        ForeignKey("questions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(36),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Tag(Base):
    """
    Tag definitions.

    Tags are scoped to a user; names are unique per user. Import creates
    missing tags lazily as CUSTOM tags.
    """

    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    name: Mapped[str] = mapped_column(String(100))
    category: Mapped[str] = mapped_column(String(50), default="custom")
    color: Mapped[str] = mapped_column(String(20), default="#1890ff")
    type: Mapped[str] = mapped_column(String(20), default=TagType.CUSTOM.value)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class Question(Base):
    """
    A user-owned question (flashcard).

    Content fields are edited by the user. The review fields
    (mastery_level, next_review_at, last_reviewed_at, practice_count,
    total_time_spent) are a cached projection of the review log and are only
    written by the review scheduler.

    Attributes:
        id: UUID primary key.
        user_id: Owner identifier.
        content: The question prompt.
        answer: The expected answer.
        analysis: Optional worked analysis.
        remark: Optional free-text remark.
        subject: Free-text subject label.
        images: Ordered list of image references.
        mastery_level: 0 (unlearned) to 5 (expert).
        next_review_at: When the question is next due. Null means due now.
        last_reviewed_at: Timestamp of the most recent review.
        practice_count: Number of recorded reviews.
        total_time_spent: Accumulated review time in seconds.
        tags: Linked user tags.
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    # Content
    content: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    analysis: Mapped[Optional[str]] = mapped_column(Text)
    remark: Mapped[Optional[str]] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(String(100), index=True)
    images: Mapped[list] = mapped_column(JSON, default=list)

    # Review projection
    mastery_level: Mapped[int] = mapped_column(Integer, default=0)
    next_review_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), index=True
    )
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )
    practice_count: Mapped[int] = mapped_column(Integer, default=0)
    total_time_spent: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    tags: Mapped[List["Tag"]] = relationship(secondary=question_tags, lazy="selectin")


class ReviewLog(Base):
    """
    Append-only record of one review outcome.

    Rows are never updated. They are removed only together with their
    question. Every statistic (streaks, heatmap, per-question history)
    is derived from this table.
    """

    __tablename__ = "review_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    status: Mapped[str] = mapped_column(String(20))
    note: Mapped[Optional[str]] = mapped_column(Text)
    duration: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, index=True
    )

    # Relationships
    question: Mapped["Question"] = relationship(lazy="raise")


class PracticeSession(Base):
    """
    One round of practice over a fixed, ordered batch of questions.

    question_ids is a snapshot taken when the session starts; ids whose
    question was deleted later are skipped when the session is loaded.

    Attributes:
        id: UUID primary key.
        user_id: Owner identifier.
        question_ids: Ordered question ids for this round.
        current_index: Cursor, 0 <= current_index <= len(question_ids).
        daily_limit: Batch size requested when the round was started.
        status: ACTIVE, COMPLETED or TOMORROW.
        started_at: When the round was created.
        completed_at: When the round left ACTIVE, if it has.
    """

    __tablename__ = "practice_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    question_ids: Mapped[list] = mapped_column(JSON, default=list)
    current_index: Mapped[int] = mapped_column(Integer, default=0)
    daily_limit: Mapped[int] = mapped_column(Integer, default=20)
    status: Mapped[str] = mapped_column(
        String(20), default=PracticeSessionStatus.ACTIVE.value, index=True
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class PracticeRecord(Base):
    """
    Daily practice completion marker.

    Written when the user finishes the day's practice. Holds the distinct
    question ids reviewed that day and the number of reviews.
    """

    __tablename__ = "practice_records"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_practice_records_user_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    question_ids: Mapped[list] = mapped_column(JSON, default=list)
    count: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )
