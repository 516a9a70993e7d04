"""
Repositories

Thin query layer over the ORM models. Repositories never commit; the
calling service owns the transaction and commits once per operation.

Repositories:
- QuestionRepository: question lookup, candidate selection, listing
- ReviewLogRepository: append-only review ledger and its aggregates
- PracticeSessionRepository: practice session persistence
- PracticeRecordRepository: daily completion markers

Usage:
    from app.db.repositories import QuestionRepository

    repo = QuestionRepository(db)
    due = await repo.find_candidates(user_id, filters, due_before=now, limit=20)
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.models import PracticeRecord, PracticeSession, Question, ReviewLog, Tag
from app.enums.review import PracticeSessionStatus, SortOrder
from app.models.question import QuestionFilters

logger = logging.getLogger(__name__)


# =============================================================================
# Questions
# =============================================================================


class QuestionRepository:
    """Queries over a user's questions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _owned(self, user_id: str) -> Select:
        return select(Question).where(Question.user_id == user_id)

    @staticmethod
    def _apply_filters(stmt: Select, filters: Optional[QuestionFilters]) -> Select:
        """AND together the optional filters. Tag filter matches any tag name."""
        if filters is None:
            return stmt
        if filters.subjects:
            stmt = stmt.where(Question.subject.in_(filters.subjects))
        if filters.tags:
            stmt = stmt.where(Question.tags.any(Tag.name.in_(filters.tags)))
        if filters.min_mastery_level is not None:
            stmt = stmt.where(Question.mastery_level >= filters.min_mastery_level)
        if filters.max_mastery_level is not None:
            stmt = stmt.where(Question.mastery_level <= filters.max_mastery_level)
        return stmt

    @staticmethod
    def _due(due_before: datetime):
        return or_(
            Question.next_review_at.is_(None),
            Question.next_review_at <= due_before,
        )

    @staticmethod
    def _review_order(stmt: Select) -> Select:
        # next_review_at ascending with nulls first, then oldest first
        return stmt.order_by(
            Question.next_review_at.is_not(None),
            Question.next_review_at.asc(),
            Question.created_at.asc(),
        )

    async def find_candidates(
        self,
        user_id: str,
        filters: Optional[QuestionFilters] = None,
        due_before: Optional[datetime] = None,
        limit: int = 20,
    ) -> list[Question]:
        """
        Select practice candidates in review order.

        Args:
            user_id: Owner
            filters: Optional subject/tag/mastery filters
            due_before: When given, only questions due at this instant
            limit: Maximum number of rows

        Returns:
            Questions ordered by next_review_at (nulls first), then created_at
        """
        stmt = self._apply_filters(self._owned(user_id), filters)
        if due_before is not None:
            stmt = stmt.where(self._due(due_before))
        stmt = self._review_order(stmt).limit(limit)

        result = await self.db.execute(stmt)
        questions = list(result.scalars().all())
        logger.debug(
            f"Candidate query for user {user_id}: {len(questions)} rows "
            f"(due_before={due_before}, limit={limit})"
        )
        return questions

    async def find_by_ids(self, user_id: str, ids: Sequence[str]) -> list[Question]:
        """Load owned questions by id. Order is unspecified; missing ids are absent."""
        if not ids:
            return []
        result = await self.db.execute(
            self._owned(user_id).where(Question.id.in_(list(ids)))
        )
        return list(result.scalars().all())

    async def get_owned(self, user_id: str, question_id: str) -> Optional[Question]:
        result = await self.db.execute(
            self._owned(user_id).where(Question.id == question_id)
        )
        return result.scalar_one_or_none()

    async def count_due(self, user_id: str, now: datetime) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Question)
            .where(Question.user_id == user_id, self._due(now))
        )
        return result.scalar() or 0

    async def count_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Question)
            .where(Question.user_id == user_id)
        )
        return result.scalar() or 0

    async def mastery_counts(self, user_id: str) -> dict[int, int]:
        """Number of questions per mastery level (levels with no rows omitted)."""
        result = await self.db.execute(
            select(Question.mastery_level, func.count())
            .where(Question.user_id == user_id)
            .group_by(Question.mastery_level)
        )
        return {level: count for level, count in result.all()}

    def apply_review(
        self,
        question: Question,
        level: int,
        next_review_at: datetime,
        reviewed_at: datetime,
        duration: int,
    ) -> Question:
        """Update the cached review projection of a question."""
        question.mastery_level = level
        question.next_review_at = next_review_at
        question.last_reviewed_at = reviewed_at
        question.practice_count = (question.practice_count or 0) + 1
        question.total_time_spent = (question.total_time_spent or 0) + duration
        return question

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def list_page(
        self,
        user_id: str,
        filters: Optional[QuestionFilters] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Question], int]:
        """Newest-first page of matching questions plus the total match count."""
        stmt = self._apply_filters(self._owned(user_id), filters)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Question.content.ilike(pattern),
                    Question.answer.ilike(pattern),
                    Question.subject.ilike(pattern),
                    Question.tags.any(Tag.name.ilike(pattern)),
                )
            )

        total_result = await self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            stmt.order_by(Question.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_all(
        self,
        user_id: str,
        filters: Optional[QuestionFilters] = None,
        order: SortOrder = SortOrder.ASC,
    ) -> list[Question]:
        """All matching questions ordered by creation time."""
        stmt = self._apply_filters(self._owned(user_id), filters)
        if order == SortOrder.DESC:
            stmt = stmt.order_by(Question.created_at.desc())
        else:
            stmt = stmt.order_by(Question.created_at.asc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_subjects(
        self, user_id: str, search: Optional[str] = None, limit: int = 20
    ) -> list[str]:
        stmt = (
            select(Question.subject)
            .where(Question.user_id == user_id)
            .distinct()
            .order_by(Question.subject)
            .limit(limit)
        )
        if search:
            stmt = stmt.where(Question.subject.ilike(f"%{search}%"))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, user_id: str, content: str, answer: str) -> bool:
        """Whether the user already has a question with this content and answer."""
        result = await self.db.execute(
            select(Question.id)
            .where(
                Question.user_id == user_id,
                Question.content == content,
                Question.answer == answer,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    def add(self, question: Question) -> Question:
        self.db.add(question)
        return question

    async def delete(self, question: Question) -> None:
        """Delete a question together with its review log."""
        await self.db.execute(
            delete(ReviewLog).where(ReviewLog.question_id == question.id)
        )
        await self.db.delete(question)


# =============================================================================
# Review Log
# =============================================================================


class ReviewLogRepository:
    """Append-only review ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def append(
        self,
        user_id: str,
        question_id: str,
        status: str,
        created_at: datetime,
        note: Optional[str] = None,
        duration: int = 0,
    ) -> ReviewLog:
        entry = ReviewLog(
            user_id=user_id,
            question_id=question_id,
            status=status,
            note=note,
            duration=duration,
            created_at=created_at,
        )
        self.db.add(entry)
        return entry

    async def list_for_user(
        self, user_id: str, offset: int = 0, limit: int = 20
    ) -> tuple[list[ReviewLog], int]:
        """Newest-first page of a user's log with the question loaded."""
        total_result = await self.db.execute(
            select(func.count())
            .select_from(ReviewLog)
            .where(ReviewLog.user_id == user_id)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(ReviewLog)
            .where(ReviewLog.user_id == user_id)
            .options(selectinload(ReviewLog.question))
            .order_by(ReviewLog.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_activity(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> list[tuple[datetime, str]]:
        """(created_at, status) pairs in chronological order."""
        stmt = select(ReviewLog.created_at, ReviewLog.status).where(
            ReviewLog.user_id == user_id
        )
        if since is not None:
            stmt = stmt.where(ReviewLog.created_at >= since)
        if until is not None:
            stmt = stmt.where(ReviewLog.created_at < until)
        result = await self.db.execute(stmt.order_by(ReviewLog.created_at.asc()))
        return [(created_at, status) for created_at, status in result.all()]

    async def count_since(self, user_id: str, since: datetime) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ReviewLog)
            .where(ReviewLog.user_id == user_id, ReviewLog.created_at >= since)
        )
        return result.scalar() or 0

    async def question_ids_since(self, user_id: str, since: datetime) -> list[str]:
        """Distinct question ids reviewed since the given instant."""
        result = await self.db.execute(
            select(ReviewLog.question_id)
            .where(ReviewLog.user_id == user_id, ReviewLog.created_at >= since)
            .distinct()
        )
        return list(result.scalars().all())

    async def list_for_question(
        self,
        question_id: str,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[list[ReviewLog], int]:
        """Newest-first log rows of one question; all rows when limit is None."""
        total_result = await self.db.execute(
            select(func.count())
            .select_from(ReviewLog)
            .where(ReviewLog.question_id == question_id)
        )
        total = total_result.scalar() or 0

        stmt = (
            select(ReviewLog)
            .where(ReviewLog.question_id == question_id)
            .order_by(ReviewLog.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total


# =============================================================================
# Practice Sessions
# =============================================================================


class PracticeSessionRepository:
    """Practice session persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, session_id: str) -> Optional[PracticeSession]:
        return await self.db.get(PracticeSession, session_id)

    async def find_active(self, user_id: str) -> Optional[PracticeSession]:
        """Newest ACTIVE session of the user, if any."""
        result = await self.db.execute(
            select(PracticeSession)
            .where(
                PracticeSession.user_id == user_id,
                PracticeSession.status == PracticeSessionStatus.ACTIVE.value,
            )
            .order_by(PracticeSession.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def complete_active(self, user_id: str, now: datetime) -> int:
        """Mark every ACTIVE session of the user COMPLETED. Returns rows changed."""
        result = await self.db.execute(
            select(PracticeSession).where(
                PracticeSession.user_id == user_id,
                PracticeSession.status == PracticeSessionStatus.ACTIVE.value,
            )
        )
        active = list(result.scalars().all())
        for session in active:
            session.status = PracticeSessionStatus.COMPLETED.value
            session.completed_at = now
        return len(active)

    def create(
        self,
        user_id: str,
        question_ids: list[str],
        daily_limit: int,
        started_at: datetime,
    ) -> PracticeSession:
        session = PracticeSession(
            user_id=user_id,
            question_ids=list(question_ids),
            current_index=0,
            daily_limit=daily_limit,
            status=PracticeSessionStatus.ACTIVE.value,
            started_at=started_at,
        )
        self.db.add(session)
        return session

    async def save(self, session: PracticeSession) -> PracticeSession:
        await self.db.flush()
        return session

    async def count_completed_since(self, user_id: str, since: datetime) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(PracticeSession)
            .where(
                PracticeSession.user_id == user_id,
                PracticeSession.status == PracticeSessionStatus.COMPLETED.value,
                PracticeSession.completed_at >= since,
            )
        )
        return result.scalar() or 0


# =============================================================================
# Practice Records
# =============================================================================


class PracticeRecordRepository:
    """Daily practice completion markers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_day(self, user_id: str, day: datetime) -> Optional[PracticeRecord]:
        result = await self.db.execute(
            select(PracticeRecord).where(
                PracticeRecord.user_id == user_id,
                PracticeRecord.date == day,
            )
        )
        return result.scalar_one_or_none()

    def add(self, record: PracticeRecord) -> PracticeRecord:
        self.db.add(record)
        return record

    async def get_or_create_for_day(self, user_id: str, day: datetime) -> PracticeRecord:
        """
        The user's record for a day, inserting an empty one if missing.

        The insert runs in a savepoint. If another request inserted the same
        (user, day) row first, the unique constraint rejects ours and that
        row is returned instead.
        """
        record = await self.get_for_day(user_id, day)
        if record is not None:
            return record

        try:
            async with self.db.begin_nested():
                record = self.add(PracticeRecord(user_id=user_id, date=day))
            return record
        except IntegrityError:
            logger.debug(f"Practice record for {user_id} on {day.date()} already exists")

        existing = await self.get_for_day(user_id, day)
        if existing is None:
            raise RuntimeError(f"Practice record for {user_id} vanished after conflict")
        return existing
