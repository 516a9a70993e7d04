"""
Unit tests for ReviewService.

Tests review submission against in-memory repositories:
- Review projection update (level, next review, counters)
- Log append with the same timestamp
- Ownership checks
- Pending (due) question selection and ordering
"""

from datetime import timedelta

import pytest

from app.enums.review import ReviewStatus
from app.middleware.error_handling import NotFoundError
from app.models.question import QuestionFilters
from app.models.review import SubmitReviewRequest
from app.services.review.review_service import ReviewService
from tests.factories import (
    FIXED_NOW,
    OTHER_USER_ID,
    USER_ID,
    InMemoryQuestionRepository,
    InMemoryReviewLogRepository,
    make_question,
    make_tag,
)


@pytest.fixture
def questions():
    return InMemoryQuestionRepository()


@pytest.fixture
def logs():
    return InMemoryReviewLogRepository()


@pytest.fixture
def service(mock_db_session, questions, logs, clock):
    return ReviewService(mock_db_session, questions=questions, logs=logs, clock=clock)


class TestSubmitReview:
    @pytest.mark.asyncio
    async def test_mastered_raises_level_and_schedules(self, service, questions, logs):
        question = questions.add(make_question("q1", mastery_level=2))

        result = await service.submit_review(
            USER_ID,
            SubmitReviewRequest(question_id="q1", status=ReviewStatus.MASTERED),
        )

        assert result.mastery_level == 3
        assert result.next_review_at == FIXED_NOW + timedelta(days=7)
        assert question.mastery_level == 3
        assert question.next_review_at == FIXED_NOW + timedelta(days=7)
        assert question.last_reviewed_at == FIXED_NOW
        assert question.practice_count == 1

    @pytest.mark.asyncio
    async def test_appends_one_log_row(self, service, questions, logs):
        questions.add(make_question("q1", mastery_level=2))

        await service.submit_review(
            USER_ID,
            SubmitReviewRequest(
                question_id="q1",
                status=ReviewStatus.FUZZY,
                note="mixed up signs",
                duration=45,
            ),
        )

        assert len(logs.entries) == 1
        entry = logs.entries[0]
        assert entry.question_id == "q1"
        assert entry.user_id == USER_ID
        assert entry.status == "FUZZY"
        assert entry.note == "mixed up signs"
        assert entry.duration == 45
        assert entry.created_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_forgotten_reviews_tomorrow(self, service, questions):
        questions.add(make_question("q1", mastery_level=0))

        result = await service.submit_review(
            USER_ID,
            SubmitReviewRequest(question_id="q1", status=ReviewStatus.FORGOTTEN),
        )

        assert result.mastery_level == 0
        assert result.next_review_at == FIXED_NOW + timedelta(days=1)
        assert "tomorrow" in result.message

    @pytest.mark.asyncio
    async def test_negative_duration_counts_as_zero(self, service, questions, logs):
        question = questions.add(make_question("q1"))
        question.total_time_spent = 100

        await service.submit_review(
            USER_ID,
            SubmitReviewRequest(
                question_id="q1", status=ReviewStatus.FUZZY, duration=-20
            ),
        )

        assert question.total_time_spent == 100
        assert logs.entries[0].duration == 0

    @pytest.mark.asyncio
    async def test_accumulates_practice_count_and_time(self, service, questions):
        question = questions.add(make_question("q1"))

        for duration in (30, 15):
            await service.submit_review(
                USER_ID,
                SubmitReviewRequest(
                    question_id="q1", status=ReviewStatus.MASTERED, duration=duration
                ),
            )

        assert question.practice_count == 2
        assert question.total_time_spent == 45
        assert question.mastery_level == 2

    @pytest.mark.asyncio
    async def test_commits_once(self, service, questions, mock_db_session):
        questions.add(make_question("q1"))

        await service.submit_review(
            USER_ID,
            SubmitReviewRequest(question_id="q1", status=ReviewStatus.MASTERED),
        )

        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_question_raises_not_found(self, service, logs):
        with pytest.raises(NotFoundError):
            await service.submit_review(
                USER_ID,
                SubmitReviewRequest(question_id="missing", status=ReviewStatus.FUZZY),
            )
        assert logs.entries == []

    @pytest.mark.asyncio
    async def test_other_users_question_raises_not_found(
        self, service, questions, logs, mock_db_session
    ):
        question = questions.add(make_question("q1", user_id=OTHER_USER_ID))

        with pytest.raises(NotFoundError):
            await service.submit_review(
                USER_ID,
                SubmitReviewRequest(question_id="q1", status=ReviewStatus.MASTERED),
            )

        assert question.mastery_level == 0
        assert logs.entries == []
        mock_db_session.commit.assert_not_awaited()


class TestApplyReview:
    @pytest.mark.asyncio
    async def test_does_not_commit(self, service, questions, mock_db_session):
        question = questions.add(make_question("q1"))

        await service.apply_review(USER_ID, question, ReviewStatus.MASTERED)

        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_clock_for_both_writes(self, service, questions, logs, clock):
        clock.advance(hours=3)
        question = questions.add(make_question("q1"))

        await service.apply_review(USER_ID, question, ReviewStatus.FUZZY)

        assert question.last_reviewed_at == clock.now
        assert logs.entries[0].created_at == clock.now


class TestGetPending:
    @pytest.mark.asyncio
    async def test_returns_only_due_questions(self, service, questions):
        questions.add(make_question("due", next_review_at=FIXED_NOW - timedelta(hours=1)))
        questions.add(make_question("never", next_review_at=None))
        questions.add(
            make_question("later", next_review_at=FIXED_NOW + timedelta(days=1))
        )

        pending = await service.get_pending(USER_ID)

        assert {q.id for q in pending} == {"due", "never"}

    @pytest.mark.asyncio
    async def test_never_reviewed_first_then_earliest_due(self, service, questions):
        questions.add(make_question("b", next_review_at=FIXED_NOW - timedelta(days=1)))
        questions.add(make_question("a", next_review_at=FIXED_NOW - timedelta(days=3)))
        questions.add(make_question("new", next_review_at=None))

        pending = await service.get_pending(USER_ID)

        assert [q.id for q in pending] == ["new", "a", "b"]

    @pytest.mark.asyncio
    async def test_applies_filters_and_limit(self, service, questions):
        algebra = make_tag("algebra")
        questions.add(make_question("m1", subject="math", tags=[algebra]))
        questions.add(make_question("m2", subject="math"))
        questions.add(make_question("p1", subject="physics", tags=[algebra]))

        by_tag = await service.get_pending(
            USER_ID, QuestionFilters(subjects=["math"], tags=["algebra"])
        )
        limited = await service.get_pending(USER_ID, limit=2)

        assert [q.id for q in by_tag] == ["m1"]
        assert len(limited) == 2

    @pytest.mark.asyncio
    async def test_excludes_other_users(self, service, questions):
        questions.add(make_question("mine"))
        questions.add(make_question("theirs", user_id=OTHER_USER_ID))

        pending = await service.get_pending(USER_ID)

        assert [q.id for q in pending] == ["mine"]


class TestStatusOptions:
    def test_three_options_in_severity_order(self):
        options = ReviewService.status_options()

        assert [o.value for o in options] == [
            ReviewStatus.FORGOTTEN,
            ReviewStatus.FUZZY,
            ReviewStatus.MASTERED,
        ]
