"""
Practice Session Service

Manages practice rounds: fixed, ordered batches of questions that the user
works through with a cursor.

Session lifecycle:
- start(): selects due questions (falling back to all matching questions),
  shuffles them, completes any ACTIVE session and persists a snapshot; when
  nothing matches, the ACTIVE session is left untouched
- reset(): like start() but due questions only, no filters
- submit_answer(): records a review and advances the cursor; the submission
  that moves the cursor past the last question completes the session
- navigate() / jump_to(): reposition the cursor, never complete
- update_status(): explicit COMPLETED / TOMORROW / ACTIVE

At most one ACTIVE session exists per user. The active session is always
found by query; nothing is cached between calls.

Question payloads are re-resolved from the id snapshot on every response.
Deleted questions are skipped, but total_count stays len(question_ids).

Usage:
    from app.services.review import PracticeSessionService

    service = PracticeSessionService(db)
    session = await service.start(user_id, StartPracticeRequest(limit=10))
    result = await service.submit_answer(
        user_id, session.id, SubmitReviewRequest(question_id=..., status=...)
    )
"""

import logging
import random
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import PracticeSession, Question
from app.db.repositories import (
    PracticeRecordRepository,
    PracticeSessionRepository,
    QuestionRepository,
    ReviewLogRepository,
)
from app.enums.review import NavigateDirection, PracticeSessionStatus
from app.middleware.error_handling import (
    InvalidArgumentError,
    InvalidStateError,
    NoCandidatesError,
    NotFoundError,
)
from app.models.question import QuestionFilters
from app.models.review import (
    DailyPracticeStatus,
    PracticeRecordResponse,
    PracticeSessionResponse,
    SessionQuestion,
    SessionSubmitResponse,
    StartPracticeRequest,
    SubmitReviewRequest,
)
from app.services.clock import Clock, start_of_day, utc_now
from app.services.review.review_service import ReviewService

logger = logging.getLogger(__name__)

_TERMINAL_STATUSES = (PracticeSessionStatus.COMPLETED, PracticeSessionStatus.TOMORROW)


class PracticeSessionService:
    """
    Practice session state machine.

    Every public operation commits at most once. Reviews submitted through a
    session land in the same transaction as the cursor move.
    """

    def __init__(
        self,
        db: AsyncSession,
        questions: Optional[QuestionRepository] = None,
        logs: Optional[ReviewLogRepository] = None,
        sessions: Optional[PracticeSessionRepository] = None,
        records: Optional[PracticeRecordRepository] = None,
        clock: Clock = utc_now,
        shuffle: Callable[[list], None] = random.shuffle,
    ):
        """
        Initialize practice session service.

        Args:
            db: Database session (commit owner)
            questions: Question repository
            logs: Review log repository
            sessions: Practice session repository
            records: Practice record repository
            clock: Source of "now"
            shuffle: In-place list shuffle used for session order
        """
        self.db = db
        self.questions = questions or QuestionRepository(db)
        self.logs = logs or ReviewLogRepository(db)
        self.sessions = sessions or PracticeSessionRepository(db)
        self.records = records or PracticeRecordRepository(db)
        self.clock = clock
        self._shuffle = shuffle
        self.reviews = ReviewService(
            db, questions=self.questions, logs=self.logs, clock=clock
        )

    # =========================================================================
    # Session Creation
    # =========================================================================

    async def start(
        self, user_id: str, request: StartPracticeRequest
    ) -> PracticeSessionResponse:
        """
        Start a new practice round.

        Due questions are preferred. When none are due, any matching question
        may be practiced ahead of schedule.

        Raises:
            NoCandidatesError: If no question matches the filters
        """
        now = self.clock()
        limit = request.limit
        filters = QuestionFilters(
            subjects=request.subjects,
            tags=request.tags,
            min_mastery_level=request.min_mastery_level,
            max_mastery_level=request.max_mastery_level,
        )

        candidates = await self.questions.find_candidates(
            user_id, filters, due_before=now, limit=limit
        )
        if not candidates:
            logger.debug(f"No due questions for user {user_id}, practicing ahead")
            candidates = await self.questions.find_candidates(
                user_id, filters, due_before=None, limit=limit
            )
        if not candidates:
            raise NoCandidatesError("No questions available. Add some questions first.")

        return await self._create_session(user_id, candidates, limit)

    async def reset(
        self, user_id: str, daily_limit: Optional[int] = None
    ) -> PracticeSessionResponse:
        """
        Start another round drawn only from due questions.

        Raises:
            NoCandidatesError: If nothing is due
        """
        now = self.clock()
        limit = daily_limit or settings.PRACTICE_DEFAULT_LIMIT

        candidates = await self.questions.find_candidates(
            user_id, None, due_before=now, limit=limit
        )
        if not candidates:
            raise NoCandidatesError("No questions are due for review")

        return await self._create_session(user_id, candidates, limit)

    async def _create_session(
        self, user_id: str, candidates: list[Question], limit: int
    ) -> PracticeSessionResponse:
        # The previous round ends only once a new one can replace it
        await self.sessions.complete_active(user_id, self.clock())

        ordered = list(candidates)
        self._shuffle(ordered)

        session = self.sessions.create(
            user_id=user_id,
            question_ids=[q.id for q in ordered],
            daily_limit=limit,
            started_at=self.clock(),
        )
        await self.db.commit()

        logger.info(
            f"Practice session {session.id} started for user {user_id} "
            f"with {len(ordered)} questions"
        )
        return self._to_response(session, ordered)

    # =========================================================================
    # Session Queries
    # =========================================================================

    async def get(self, user_id: str) -> Optional[PracticeSessionResponse]:
        """The user's newest ACTIVE session, or None."""
        session = await self.sessions.find_active(user_id)
        if session is None:
            return None
        return await self._render(user_id, session)

    # =========================================================================
    # Session Mutations
    # =========================================================================

    async def submit_answer(
        self, user_id: str, session_id: str, request: SubmitReviewRequest
    ) -> SessionSubmitResponse:
        """
        Record a review and advance the cursor.

        The submitted question is not checked against the cursor position.

        Raises:
            NotFoundError: If the session or question is missing or not owned
            InvalidStateError: If the session is no longer ACTIVE
        """
        session = await self._get_active(user_id, session_id)

        question = await self.questions.get_owned(user_id, request.question_id)
        if question is None:
            raise NotFoundError(f"Question {request.question_id} not found")

        await self.reviews.apply_review(
            user_id,
            question,
            request.status,
            note=request.note,
            duration=request.duration,
        )

        session.current_index = session.current_index + 1
        is_completed = session.current_index >= len(session.question_ids)
        if is_completed:
            session.status = PracticeSessionStatus.COMPLETED.value
            session.completed_at = self.clock()

        await self.sessions.save(session)
        await self.db.commit()

        if is_completed:
            logger.info(f"Practice session {session.id} completed")

        return SessionSubmitResponse(
            session=await self._render(user_id, session),
            is_completed=is_completed,
        )

    async def navigate(
        self, user_id: str, session_id: str, direction: NavigateDirection
    ) -> PracticeSessionResponse:
        """
        Move the cursor one step, clamped to the snapshot bounds.

        Raises:
            NotFoundError: If the session is missing or not owned
            InvalidStateError: If the session is no longer ACTIVE
        """
        session = await self._get_active(user_id, session_id)
        last_index = max(len(session.question_ids) - 1, 0)

        if NavigateDirection(direction) == NavigateDirection.NEXT:
            session.current_index = min(session.current_index + 1, last_index)
        else:
            session.current_index = max(session.current_index - 1, 0)

        await self.sessions.save(session)
        await self.db.commit()
        return await self._render(user_id, session)

    async def jump_to(
        self, user_id: str, session_id: str, question_id: str
    ) -> PracticeSessionResponse:
        """
        Move the cursor to a question of the session.

        Raises:
            NotFoundError: If the session is missing or not owned
            InvalidStateError: If the session is no longer ACTIVE
            InvalidArgumentError: If the question is not part of the session
        """
        session = await self._get_active(user_id, session_id)

        try:
            index = list(session.question_ids).index(question_id)
        except ValueError:
            raise InvalidArgumentError(
                f"Question {question_id} is not part of this session"
            )

        session.current_index = index
        await self.sessions.save(session)
        await self.db.commit()
        return await self._render(user_id, session)

    async def update_status(
        self, user_id: str, session_id: str, status: PracticeSessionStatus
    ) -> PracticeSessionResponse:
        """
        Set a session's status. Only ownership is checked.

        Raises:
            NotFoundError: If the session is missing or not owned
        """
        session = await self._get_owned(user_id, session_id)
        status = PracticeSessionStatus(status)

        session.status = status.value
        if status in _TERMINAL_STATUSES:
            session.completed_at = self.clock()

        await self.sessions.save(session)
        await self.db.commit()

        logger.info(f"Practice session {session.id} set to {status.value}")
        return await self._render(user_id, session)

    # =========================================================================
    # Daily Practice
    # =========================================================================

    async def daily_status(self, user_id: str) -> DailyPracticeStatus:
        """Today's practice progress."""
        now = self.clock()
        today = start_of_day(now)

        active = await self.sessions.find_active(user_id)
        completed_rounds = await self.sessions.count_completed_since(user_id, today)
        total_count = await self.logs.count_since(user_id, today)
        pending_count = await self.questions.count_due(user_id, now)

        return DailyPracticeStatus(
            has_active_session=active is not None,
            active_session_id=active.id if active else None,
            today_completed_rounds=completed_rounds,
            today_total_count=total_count,
            daily_limit=active.daily_limit if active else settings.PRACTICE_DEFAULT_LIMIT,
            pending_count=pending_count,
        )

    async def complete_daily_practice(self, user_id: str) -> PracticeRecordResponse:
        """Mark today's practice finished, recording what was reviewed."""
        today = start_of_day(self.clock())

        question_ids = await self.logs.question_ids_since(user_id, today)
        count = await self.logs.count_since(user_id, today)

        record = await self.records.get_or_create_for_day(user_id, today)
        record.question_ids = list(question_ids)
        record.count = count
        record.completed = True
        await self.db.commit()

        logger.info(
            f"Daily practice completed for user {user_id}: {count} reviews "
            f"over {len(question_ids)} questions"
        )
        return PracticeRecordResponse.model_validate(record)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_owned(self, user_id: str, session_id: str) -> PracticeSession:
        session = await self.sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(f"Practice session {session_id} not found")
        return session

    async def _get_active(self, user_id: str, session_id: str) -> PracticeSession:
        session = await self._get_owned(user_id, session_id)
        if session.status != PracticeSessionStatus.ACTIVE.value:
            raise InvalidStateError(f"Practice session {session_id} has ended")
        return session

    async def _render(
        self, user_id: str, session: PracticeSession
    ) -> PracticeSessionResponse:
        """Re-resolve the snapshot in order, skipping deleted questions."""
        found = await self.questions.find_by_ids(user_id, session.question_ids)
        by_id = {q.id: q for q in found}

        ordered = [by_id[qid] for qid in session.question_ids if qid in by_id]
        missing = len(session.question_ids) - len(ordered)
        if missing:
            logger.warning(
                f"Practice session {session.id}: {missing} question(s) no longer exist"
            )
        return self._to_response(session, ordered)

    @staticmethod
    def _to_response(
        session: PracticeSession, questions: list[Question]
    ) -> PracticeSessionResponse:
        return PracticeSessionResponse(
            id=session.id,
            daily_limit=session.daily_limit,
            questions=[SessionQuestion.model_validate(q) for q in questions],
            current_index=session.current_index,
            status=session.status,
            total_count=len(session.question_ids),
            finished_count=session.current_index,
        )
