"""
Integration Tests for the Repositories

Runs the SQLAlchemy queries against SQLite:
- Candidate selection order and filters
- Listing and search
- Review log aggregates
- Practice session bookkeeping
- Daily practice records
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.models import PracticeRecord, Question, Tag
from app.db.repositories import (
    PracticeRecordRepository,
    PracticeSessionRepository,
    QuestionRepository,
    ReviewLogRepository,
)
from app.enums.review import PracticeSessionStatus, SortOrder
from app.models.question import QuestionFilters
from tests.factories import OTHER_USER_ID, USER_ID

pytestmark = pytest.mark.integration

NOW = datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)


def new_question(qid, user_id=USER_ID, subject="math", level=0, due=None, age_days=10, tags=()):
    return Question(
        id=qid,
        user_id=user_id,
        content=f"Content {qid}",
        answer=f"Answer {qid}",
        subject=subject,
        images=[],
        mastery_level=level,
        next_review_at=due,
        created_at=NOW - timedelta(days=age_days),
        tags=list(tags),
    )


@pytest.fixture
def questions(db_session):
    return QuestionRepository(db_session)


@pytest.fixture
def logs(db_session):
    return ReviewLogRepository(db_session)


class TestFindCandidates:
    @pytest.mark.asyncio
    async def test_due_only_nulls_first_then_oldest_due(self, db_session, questions):
        db_session.add_all(
            [
                new_question("late", due=NOW - timedelta(days=1)),
                new_question("early", due=NOW - timedelta(days=5)),
                new_question("new-old", due=None, age_days=20),
                new_question("new-young", due=None, age_days=2),
                new_question("future", due=NOW + timedelta(days=1)),
            ]
        )
        await db_session.flush()

        rows = await questions.find_candidates(USER_ID, due_before=NOW)

        assert [q.id for q in rows] == ["new-old", "new-young", "early", "late"]

    @pytest.mark.asyncio
    async def test_without_due_bound_includes_future(self, db_session, questions):
        db_session.add_all(
            [
                new_question("future", due=NOW + timedelta(days=1)),
                new_question("due", due=NOW - timedelta(days=1)),
            ]
        )
        await db_session.flush()

        rows = await questions.find_candidates(USER_ID)

        assert [q.id for q in rows] == ["due", "future"]

    @pytest.mark.asyncio
    async def test_filters_and_limit(self, db_session, questions):
        algebra = Tag(id="t1", user_id=USER_ID, name="algebra")
        geometry = Tag(id="t2", user_id=USER_ID, name="geometry")
        db_session.add_all(
            [
                new_question("m-alg", tags=[algebra], level=1),
                new_question("m-geo", tags=[geometry], level=3),
                new_question("m-none", level=2),
                new_question("p-alg", subject="physics", tags=[algebra]),
                new_question("theirs", user_id=OTHER_USER_ID),
            ]
        )
        await db_session.flush()

        by_tags = await questions.find_candidates(
            USER_ID, QuestionFilters(tags=["algebra", "geometry"], subjects=["math"])
        )
        by_level = await questions.find_candidates(
            USER_ID, QuestionFilters(min_mastery_level=2, max_mastery_level=3)
        )
        limited = await questions.find_candidates(USER_ID, limit=2)

        assert {q.id for q in by_tags} == {"m-alg", "m-geo"}
        assert {q.id for q in by_level} == {"m-geo", "m-none"}
        assert len(limited) == 2


class TestQuestionQueries:
    @pytest.mark.asyncio
    async def test_counts(self, db_session, questions):
        db_session.add_all(
            [
                new_question("a", level=0),
                new_question("b", level=3, due=NOW + timedelta(days=3)),
                new_question("c", level=3, due=NOW - timedelta(hours=1)),
                new_question("d", user_id=OTHER_USER_ID),
            ]
        )
        await db_session.flush()

        assert await questions.count_for_user(USER_ID) == 3
        assert await questions.count_due(USER_ID, NOW) == 2
        assert await questions.mastery_counts(USER_ID) == {0: 1, 3: 2}

    @pytest.mark.asyncio
    async def test_list_page_search_matches_tag_names(self, db_session, questions):
        tag = Tag(id="t1", user_id=USER_ID, name="Calculus")
        db_session.add_all(
            [
                new_question("by-tag", tags=[tag]),
                new_question("by-subject", subject="calculus basics"),
                new_question("other"),
            ]
        )
        await db_session.flush()

        rows, total = await questions.list_page(USER_ID, search="calc")

        assert total == 2
        assert {q.id for q in rows} == {"by-tag", "by-subject"}

    @pytest.mark.asyncio
    async def test_list_page_newest_first(self, db_session, questions):
        db_session.add_all(
            [new_question(f"q{i}", age_days=i) for i in range(5)]
        )
        await db_session.flush()

        rows, total = await questions.list_page(USER_ID, offset=1, limit=2)

        assert total == 5
        assert [q.id for q in rows] == ["q1", "q2"]

    @pytest.mark.asyncio
    async def test_list_all_order(self, db_session, questions):
        db_session.add_all([new_question("old", age_days=9), new_question("new", age_days=1)])
        await db_session.flush()

        asc = await questions.list_all(USER_ID)
        desc = await questions.list_all(USER_ID, order=SortOrder.DESC)

        assert [q.id for q in asc] == ["old", "new"]
        assert [q.id for q in desc] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_exists_and_subjects(self, db_session, questions):
        db_session.add_all(
            [new_question("a", subject="math"), new_question("b", subject="biology")]
        )
        await db_session.flush()

        assert await questions.exists(USER_ID, "Content a", "Answer a") is True
        assert await questions.exists(USER_ID, "Content a", "other") is False
        assert await questions.exists(OTHER_USER_ID, "Content a", "Answer a") is False
        assert await questions.list_subjects(USER_ID) == ["biology", "math"]
        assert await questions.list_subjects(USER_ID, search="bio") == ["biology"]

    @pytest.mark.asyncio
    async def test_delete_removes_review_log(self, db_session, questions, logs):
        question = new_question("q1")
        db_session.add(question)
        await db_session.flush()
        logs.append(USER_ID, "q1", "MASTERED", created_at=NOW)
        await db_session.flush()

        await questions.delete(question)
        await db_session.flush()

        assert await questions.get_owned(USER_ID, "q1") is None
        rows, total = await logs.list_for_question("q1")
        assert total == 0


class TestReviewLogQueries:
    @pytest.mark.asyncio
    async def test_activity_and_counts(self, db_session, logs):
        db_session.add(new_question("q1"))
        db_session.add(new_question("q2"))
        await db_session.flush()
        logs.append(USER_ID, "q1", "FUZZY", created_at=NOW - timedelta(days=2))
        logs.append(USER_ID, "q2", "MASTERED", created_at=NOW - timedelta(hours=2))
        logs.append(USER_ID, "q1", "MASTERED", created_at=NOW - timedelta(hours=1))
        logs.append(OTHER_USER_ID, "q1", "MASTERED", created_at=NOW)
        await db_session.flush()

        activity = await logs.list_activity(USER_ID)
        window = await logs.list_activity(
            USER_ID, since=NOW - timedelta(days=1), until=NOW - timedelta(minutes=90)
        )
        since_today = NOW.replace(hour=0, minute=0)

        assert [status for _, status in activity] == ["FUZZY", "MASTERED", "MASTERED"]
        assert [status for _, status in window] == ["MASTERED"]
        assert await logs.count_since(USER_ID, since_today) == 2
        assert sorted(await logs.question_ids_since(USER_ID, since_today)) == ["q1", "q2"]

    @pytest.mark.asyncio
    async def test_history_loads_question(self, db_session, logs):
        db_session.add(new_question("q1"))
        await db_session.flush()
        logs.append(USER_ID, "q1", "FUZZY", created_at=NOW - timedelta(hours=2))
        logs.append(USER_ID, "q1", "MASTERED", created_at=NOW - timedelta(hours=1))
        await db_session.flush()
        db_session.expunge_all()

        rows, total = await logs.list_for_user(USER_ID, limit=1)

        assert total == 2
        assert rows[0].status == "MASTERED"
        assert rows[0].question.content == "Content q1"


class TestPracticeSessions:
    @pytest.mark.asyncio
    async def test_complete_active_only_touches_user(self, db_session):
        sessions = PracticeSessionRepository(db_session)
        mine = sessions.create(USER_ID, ["q1"], 20, started_at=NOW)
        theirs = sessions.create(OTHER_USER_ID, ["q2"], 20, started_at=NOW)
        await db_session.flush()

        changed = await sessions.complete_active(USER_ID, NOW)

        assert changed == 1
        assert mine.status == PracticeSessionStatus.COMPLETED.value
        assert theirs.status == PracticeSessionStatus.ACTIVE.value
        assert await sessions.find_active(USER_ID) is None
        assert (await sessions.find_active(OTHER_USER_ID)).id == theirs.id
        assert await sessions.count_completed_since(USER_ID, NOW - timedelta(hours=1)) == 1


class TestPracticeRecords:
    @pytest.mark.asyncio
    async def test_creates_then_reuses_days_record(self, db_session):
        records = PracticeRecordRepository(db_session)
        day = NOW.replace(hour=0, minute=0)

        first = await records.get_or_create_for_day(USER_ID, day)
        second = await records.get_or_create_for_day(USER_ID, day)

        assert first.id is not None
        assert second.id == first.id

    @pytest.mark.asyncio
    async def test_insert_losing_to_concurrent_request_returns_winner(
        self, db_session, session_maker
    ):
        day = NOW.replace(hour=0, minute=0)
        async with session_maker() as other:
            winner = PracticeRecord(user_id=USER_ID, date=day, count=3)
            other.add(winner)
            await other.commit()

        records = PracticeRecordRepository(db_session)
        real_get_for_day = records.get_for_day
        reads = []

        async def stale_first_read(user_id, for_day):
            reads.append(for_day)
            if len(reads) == 1:
                return None
            return await real_get_for_day(user_id, for_day)

        records.get_for_day = stale_first_read
        record = await records.get_or_create_for_day(USER_ID, day)

        assert record.id == winner.id
        assert record.count == 3
        assert len(reads) == 2
        await db_session.commit()
