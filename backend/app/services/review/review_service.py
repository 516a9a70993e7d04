"""
Review Service

Records review outcomes. Each review updates the question's cached review
projection and appends one row to the review log, in one transaction.

Usage:
    from app.services.review import ReviewService

    service = ReviewService(db)
    result = await service.submit_review(
        user_id,
        SubmitReviewRequest(question_id=qid, status=ReviewStatus.MASTERED),
    )
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import Question
from app.db.repositories import QuestionRepository, ReviewLogRepository
from app.enums.review import ReviewStatus
from app.middleware.error_handling import NotFoundError
from app.models.question import QuestionFilters, QuestionResponse
from app.models.review import ReviewResult, StatusOption, SubmitReviewRequest
from app.services.clock import Clock, utc_now
from app.services.review.scheduler import calculate_next_review, review_message

logger = logging.getLogger(__name__)

STATUS_OPTIONS: tuple[StatusOption, ...] = (
    StatusOption(label="Forgot", value=ReviewStatus.FORGOTTEN),
    StatusOption(label="Fuzzy", value=ReviewStatus.FUZZY),
    StatusOption(label="Mastered", value=ReviewStatus.MASTERED),
)


class ReviewService:
    """
    Applies the review scheduler to questions.

    The scheduler effect is split in two:
    - apply_review(): mutate the question and append the log row (no commit)
    - submit_review(): ownership check + apply_review() + commit

    The practice session service calls apply_review() directly so that the
    review and the session cursor move commit together.
    """

    def __init__(
        self,
        db: AsyncSession,
        questions: Optional[QuestionRepository] = None,
        logs: Optional[ReviewLogRepository] = None,
        clock: Clock = utc_now,
    ):
        """
        Initialize review service.

        Args:
            db: Database session (commit owner)
            questions: Question repository (defaults to SQLAlchemy implementation)
            logs: Review log repository (defaults to SQLAlchemy implementation)
            clock: Source of "now"
        """
        self.db = db
        self.questions = questions or QuestionRepository(db)
        self.logs = logs or ReviewLogRepository(db)
        self.clock = clock

    async def get_pending(
        self,
        user_id: str,
        filters: Optional[QuestionFilters] = None,
        limit: int = settings.PENDING_DEFAULT_LIMIT,
    ) -> list[QuestionResponse]:
        """Due questions matching the filters, in review order."""
        questions = await self.questions.find_candidates(
            user_id, filters, due_before=self.clock(), limit=limit
        )
        return [QuestionResponse.model_validate(q) for q in questions]

    async def apply_review(
        self,
        user_id: str,
        question: Question,
        status: ReviewStatus,
        note: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> ReviewResult:
        """
        Apply one review outcome to a loaded, owned question.

        Updates the review projection first and appends the log row last.
        Does not commit.
        """
        now = self.clock()
        status = ReviewStatus(status)
        new_level, delay_days = calculate_next_review(question.mastery_level, status)
        next_review_at = now + timedelta(days=delay_days)
        spent = max(0, duration or 0)

        self.questions.apply_review(
            question,
            level=new_level,
            next_review_at=next_review_at,
            reviewed_at=now,
            duration=spent,
        )
        self.logs.append(
            user_id=user_id,
            question_id=question.id,
            status=status.value,
            created_at=now,
            note=note,
            duration=spent,
        )

        logger.info(
            f"Review recorded: question={question.id} status={status.value} "
            f"level={new_level} next_review_in={delay_days}d"
        )

        return ReviewResult(
            question_id=question.id,
            mastery_level=new_level,
            next_review_at=next_review_at,
            message=review_message(status, new_level, delay_days),
        )

    async def submit_review(
        self, user_id: str, request: SubmitReviewRequest
    ) -> ReviewResult:
        """
        Record a review outside of a practice session.

        Raises:
            NotFoundError: If the question doesn't exist or isn't owned by the user
        """
        question = await self.questions.get_owned(user_id, request.question_id)
        if question is None:
            raise NotFoundError(f"Question {request.question_id} not found")

        result = await self.apply_review(
            user_id,
            question,
            request.status,
            note=request.note,
            duration=request.duration,
        )
        await self.db.commit()
        return result

    @staticmethod
    def status_options() -> list[StatusOption]:
        return list(STATUS_OPTIONS)

