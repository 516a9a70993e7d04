"""
Question Service

Question bank management: CRUD, practice listings, random pick and JSON
import/export.

Listings:
- list_questions(): paginated, newest first, with search
- sequential(): creation order (asc or desc)
- random_order(): every match shuffled, then offset/limit applied
- by_subject(): newest first within subjects/tags
- random_pick(): shuffled ids only, review state untouched

Import continues past individual failures. Each question is written in its
own savepoint so one bad row doesn't roll back the rest.

Usage:
    from app.services.question_service import QuestionService

    service = QuestionService(db)
    question = await service.create(user_id, QuestionCreate(...))
    export = await service.export(user_id, include_meta=True)
    result = await service.import_questions(user_id, ImportRequest(...))
"""

import logging
import random
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import Question
from app.db.repositories import QuestionRepository
from app.enums.review import SortOrder
from app.middleware.error_handling import NoCandidatesError, NotFoundError
from app.models.base import SuccessResponse
from app.models.question import (
    ExportData,
    ExportedQuestion,
    ImportRequest,
    ImportResult,
    QuestionCreate,
    QuestionFilters,
    QuestionListResponse,
    QuestionResponse,
    QuestionUpdate,
    RandomPickRequest,
    RandomPickResponse,
)
from app.services.clock import Clock, utc_now
from app.services.review.statistics import total_pages
from app.services.tag_service import TagService

logger = logging.getLogger(__name__)

# Characters of question content quoted in import error messages
IMPORT_ERROR_PREVIEW = 30


class QuestionService:
    """Service for the user's question bank."""

    def __init__(
        self,
        db: AsyncSession,
        questions: Optional[QuestionRepository] = None,
        tags: Optional[TagService] = None,
        clock: Clock = utc_now,
        shuffle: Callable[[list], None] = random.shuffle,
    ):
        """
        Initialize question service.

        Args:
            db: Database session (commit owner)
            questions: Question repository
            tags: Tag service used to resolve tag names
            clock: Source of "now" for exports
            shuffle: In-place list shuffle for random listings
        """
        self.db = db
        self.questions = questions or QuestionRepository(db)
        self.tags = tags or TagService(db)
        self.clock = clock
        self._shuffle = shuffle

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create(self, user_id: str, request: QuestionCreate) -> QuestionResponse:
        """Create a question, linking only tags the user already has."""
        question = Question(
            user_id=user_id,
            content=request.content,
            answer=request.answer,
            analysis=request.analysis,
            remark=request.remark,
            subject=request.subject,
            images=list(request.images),
            mastery_level=0,
            practice_count=0,
            total_time_spent=0,
        )
        question.tags = await self.tags.resolve_names(user_id, request.tags)

        self.questions.add(question)
        await self.db.commit()

        logger.info(f"Created question {question.id} for user {user_id}")
        return QuestionResponse.model_validate(question)

    async def get(self, user_id: str, question_id: str) -> QuestionResponse:
        return QuestionResponse.model_validate(
            await self._get_owned(user_id, question_id)
        )

    async def list_questions(
        self,
        user_id: str,
        subject: Optional[str] = None,
        tag: Optional[str] = None,
        mastery_level: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> QuestionListResponse:
        """
        Paginated question listing, newest first.

        search matches content, answer, subject or a tag name (substring,
        case-insensitive).
        """
        filters = QuestionFilters(
            subjects=[subject] if subject else [],
            tags=[tag] if tag else [],
            min_mastery_level=mastery_level,
            max_mastery_level=mastery_level,
        )
        items, total = await self.questions.list_page(
            user_id,
            filters,
            search=search,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return QuestionListResponse(
            data=[QuestionResponse.model_validate(q) for q in items],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
        )

    async def update(
        self, user_id: str, question_id: str, request: QuestionUpdate
    ) -> QuestionResponse:
        """
        Apply a partial update.

        When tags is given the question's tag links are replaced; unknown
        names are ignored.
        """
        question = await self._get_owned(user_id, question_id)

        changes = request.model_dump(exclude_unset=True, exclude={"tags"})
        for field, value in changes.items():
            if value is not None:
                setattr(question, field, value)

        if request.tags is not None:
            question.tags = await self.tags.resolve_names(user_id, request.tags)

        await self.db.commit()
        return QuestionResponse.model_validate(question)

    async def delete(self, user_id: str, question_id: str) -> SuccessResponse:
        """Delete a question with its review log and tag links."""
        question = await self._get_owned(user_id, question_id)

        await self.questions.delete(question)
        await self.db.commit()

        logger.info(f"Deleted question {question_id} for user {user_id}")
        return SuccessResponse(message="Question deleted")

    async def subjects(self, user_id: str, search: Optional[str] = None) -> list[str]:
        """Distinct subjects for autocomplete."""
        return await self.questions.list_subjects(
            user_id, search=search, limit=settings.SUBJECT_SUGGESTION_LIMIT
        )

    # =========================================================================
    # Practice Listings
    # =========================================================================

    async def sequential(
        self,
        user_id: str,
        filters: QuestionFilters,
        limit: int = 10,
        order: SortOrder = SortOrder.DESC,
    ) -> list[QuestionResponse]:
        questions = await self.questions.list_all(user_id, filters, order=order)
        return [QuestionResponse.model_validate(q) for q in questions[:limit]]

    async def random_order(
        self,
        user_id: str,
        filters: QuestionFilters,
        limit: int = 10,
        offset: int = 0,
    ) -> list[QuestionResponse]:
        """All matches shuffled, then sliced."""
        questions = await self.questions.list_all(user_id, filters)
        self._shuffle(questions)
        return [
            QuestionResponse.model_validate(q)
            for q in questions[offset : offset + limit]
        ]

    async def by_subject(
        self, user_id: str, filters: QuestionFilters, limit: int = 20
    ) -> list[QuestionResponse]:
        questions = await self.questions.list_all(user_id, filters, order=SortOrder.DESC)
        return [QuestionResponse.model_validate(q) for q in questions[:limit]]

    async def random_pick(
        self, user_id: str, request: RandomPickRequest
    ) -> RandomPickResponse:
        """
        Random ids of matching questions. Review state is not touched.

        Raises:
            NoCandidatesError: If nothing matches the filters
        """
        questions = await self.questions.list_all(user_id, request)
        if not questions:
            raise NoCandidatesError("No questions match the filters")

        ids = [q.id for q in questions]
        self._shuffle(ids)
        return RandomPickResponse(question_ids=ids[: request.limit])

    # =========================================================================
    # Import / Export
    # =========================================================================

    async def export(self, user_id: str, include_meta: bool = False) -> ExportData:
        """Export every question of the user, newest first."""
        questions = await self.questions.list_all(user_id, order=SortOrder.DESC)

        exported = []
        for q in questions:
            item = ExportedQuestion(
                content=q.content,
                answer=q.answer,
                analysis=q.analysis,
                remark=q.remark,
                images=list(q.images or []),
                subject=q.subject,
                tags=[t.name for t in q.tags],
            )
            if include_meta:
                item.mastery_level = q.mastery_level
                item.next_review_at = q.next_review_at
                item.last_reviewed_at = q.last_reviewed_at
            exported.append(item)

        logger.info(f"Exported {len(exported)} questions for user {user_id}")
        return ExportData(
            version=settings.EXPORT_FORMAT_VERSION,
            exported_at=self.clock(),
            total_questions=len(exported),
            include_meta=include_meta,
            questions=exported,
        )

    async def import_questions(
        self, user_id: str, request: ImportRequest
    ) -> ImportResult:
        """
        Import questions in the export format.

        Questions whose content and answer both match an existing question
        are skipped. Missing tags are created as CUSTOM tags. Scheduling
        metadata is restored only when include_meta is set.
        """
        result = ImportResult()

        for item in request.questions:
            try:
                async with self.db.begin_nested():
                    if await self.questions.exists(user_id, item.content, item.answer):
                        result.skipped += 1
                        continue

                    question = self._from_export(user_id, item, request.include_meta)
                    question.tags = [
                        await self.tags.get_or_create(user_id, name)
                        for name in dict.fromkeys(item.tags)
                    ]
                    self.questions.add(question)
                result.success += 1
            except Exception as e:
                preview = item.content[:IMPORT_ERROR_PREVIEW]
                logger.warning(f"Import of question '{preview}' failed: {e}")
                result.errors.append(f"Failed to import question '{preview}...': {e}")

        await self.db.commit()

        logger.info(
            f"Import for user {user_id}: {result.success} imported, "
            f"{result.skipped} skipped, {len(result.errors)} failed"
        )
        return result

    @staticmethod
    def _from_export(
        user_id: str, item: ExportedQuestion, include_meta: bool
    ) -> Question:
        question = Question(
            user_id=user_id,
            content=item.content,
            answer=item.answer,
            analysis=item.analysis,
            remark=item.remark,
            subject=item.subject,
            images=list(item.images),
            mastery_level=0,
            practice_count=0,
            total_time_spent=0,
        )
        if include_meta:
            if item.mastery_level is not None:
                question.mastery_level = max(
                    0, min(settings.MAX_MASTERY_LEVEL, item.mastery_level)
                )
            if item.next_review_at is not None:
                question.next_review_at = item.next_review_at
            if item.last_reviewed_at is not None:
                question.last_reviewed_at = item.last_reviewed_at
        return question

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_owned(self, user_id: str, question_id: str) -> Question:
        question = await self.questions.get_owned(user_id, question_id)
        if question is None:
            raise NotFoundError(f"Question {question_id} not found")
        return question
