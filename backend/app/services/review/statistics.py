"""
Review Statistics Service

Read-only views derived from the review log: history, overview counts,
activity heatmap, streaks, month calendar and per-question stats.

Aggregation happens in Python over (created_at, status) rows so that the
day bucketing is identical on every database backend. All day boundaries
are UTC and come from the injected clock.

Usage:
    from app.services.review import StatisticsService

    service = StatisticsService(db)
    streak = await service.get_streak(user_id)
    heatmap = await service.get_heatmap(user_id)
"""

import logging
import math
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.repositories import QuestionRepository, ReviewLogRepository
from app.enums.review import ReviewStatus
from app.middleware.error_handling import NotFoundError
from app.models.review import (
    CalendarDay,
    HeatmapDay,
    MasteryBucket,
    QuestionPracticeHistoryItem,
    QuestionPracticeHistoryResponse,
    QuestionPracticeStats,
    ReviewHistoryResponse,
    ReviewLogResponse,
    ReviewStats,
    StreakData,
    TodayCount,
    TodayStats,
)
from app.services.clock import Clock, start_of_day, start_of_week, utc_date, utc_now

logger = logging.getLogger(__name__)


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0


def calculate_intensity(
    count: int,
    per_level: int = settings.HEATMAP_COUNT_PER_LEVEL,
    max_intensity: int = settings.HEATMAP_MAX_INTENSITY,
) -> int:
    """
    Heatmap intensity (0-4) for a day's review count.

    Every started block of per_level reviews adds one level:
    1-3 reviews → 1, 4-6 → 2, 7-9 → 3, 10+ → 4.
    """
    if count <= 0:
        return 0
    return min(max_intensity, math.ceil(count / per_level))


def calculate_current_streak(review_dates: Iterable[date], today: date) -> int:
    """
    Consecutive review days ending today.

    A run that ended yesterday still counts: the user has until the end of
    today to extend it.
    """
    dates = set(review_dates)
    if today in dates:
        cursor = today
    elif today - timedelta(days=1) in dates:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in dates:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calculate_longest_streak(review_dates: Iterable[date]) -> int:
    """Longest run of consecutive review days ever."""
    sorted_dates = sorted(set(review_dates))
    if not sorted_dates:
        return 0

    longest = 1
    current = 1
    for i in range(1, len(sorted_dates)):
        if sorted_dates[i] == sorted_dates[i - 1] + timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


class StatisticsService:
    """Statistics over a user's review log and question bank."""

    def __init__(
        self,
        db: AsyncSession,
        questions: Optional[QuestionRepository] = None,
        logs: Optional[ReviewLogRepository] = None,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.questions = questions or QuestionRepository(db)
        self.logs = logs or ReviewLogRepository(db)
        self.clock = clock

    # =========================================================================
    # History & Overview
    # =========================================================================

    async def get_history(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = settings.HISTORY_DEFAULT_PAGE_SIZE,
    ) -> ReviewHistoryResponse:
        """Newest-first page of the user's review log."""
        rows, total = await self.logs.list_for_user(
            user_id, offset=(page - 1) * page_size, limit=page_size
        )
        return ReviewHistoryResponse(
            data=[ReviewLogResponse.model_validate(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages(total, page_size),
        )

    async def get_stats(self, user_id: str) -> ReviewStats:
        """Question bank overview."""
        now = self.clock()

        total_questions = await self.questions.count_for_user(user_id)
        due_today = await self.questions.count_due(user_id, now)
        this_week = await self.logs.count_since(user_id, start_of_week(now))
        mastery = await self.questions.mastery_counts(user_id)

        return ReviewStats(
            total_questions=total_questions,
            due_today=due_today,
            this_week_reviews=this_week,
            mastery_distribution=[
                MasteryBucket(level=level, count=count)
                for level, count in sorted(mastery.items())
            ],
        )

    async def get_today_count(self, user_id: str) -> TodayCount:
        """Number of questions due now."""
        return TodayCount(count=await self.questions.count_due(user_id, self.clock()))

    async def get_today_stats(self, user_id: str) -> TodayStats:
        """
        Reviews recorded today.

        Reviews are not tagged with how their question was selected, so all
        of them are attributed to the spaced schedule.
        """
        total = await self.logs.count_since(user_id, start_of_day(self.clock()))
        return TodayStats(total_count=total, ebbinghaus_count=total, random_count=0)

    # =========================================================================
    # Activity
    # =========================================================================

    async def get_heatmap(self, user_id: str) -> list[HeatmapDay]:
        """Per-day review counts for the last HEATMAP_DAYS days, oldest first."""
        since = self.clock() - timedelta(days=settings.HEATMAP_DAYS)
        activity = await self.logs.list_activity(user_id, since=since)

        counts = Counter(utc_date(created_at) for created_at, _ in activity)
        return [
            HeatmapDay(
                date=day.isoformat(),
                count=count,
                intensity=calculate_intensity(count),
            )
            for day, count in sorted(counts.items())
        ]

    async def get_streak(self, user_id: str) -> StreakData:
        """Current and longest consecutive-day streaks."""
        activity = await self.logs.list_activity(user_id)
        if not activity:
            return StreakData(
                current_streak=0,
                longest_streak=0,
                last_review_date=None,
                total_days=0,
            )

        review_dates = {utc_date(created_at) for created_at, _ in activity}
        today = utc_date(self.clock())

        return StreakData(
            current_streak=calculate_current_streak(review_dates, today),
            longest_streak=calculate_longest_streak(review_dates),
            last_review_date=max(review_dates).isoformat(),
            total_days=len(review_dates),
        )

    async def get_calendar(
        self, user_id: str, year: int, month: int
    ) -> dict[str, CalendarDay]:
        """
        Review activity per day of one month.

        Each day carries its review count and the status of its first review.
        """
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)

        activity = await self.logs.list_activity(user_id, since=start, until=end)

        days: dict[str, CalendarDay] = {}
        for created_at, status in activity:
            key = utc_date(created_at).isoformat()
            if key not in days:
                days[key] = CalendarDay(count=0, status=status)
            days[key].count += 1
        return days

    # =========================================================================
    # Per Question
    # =========================================================================

    async def get_question_history(
        self,
        user_id: str,
        question_id: str,
        page: int = 1,
        page_size: int = settings.HISTORY_DEFAULT_PAGE_SIZE,
    ) -> QuestionPracticeHistoryResponse:
        """
        Newest-first page of one question's reviews.

        Raises:
            NotFoundError: If the question doesn't exist or isn't owned by the user
        """
        await self._require_owned(user_id, question_id)

        rows, total = await self.logs.list_for_question(
            question_id, offset=(page - 1) * page_size, limit=page_size
        )
        return QuestionPracticeHistoryResponse(
            data=[QuestionPracticeHistoryItem.model_validate(row) for row in rows],
            total=total,
            total_pages=total_pages(total, page_size),
        )

    async def get_question_stats(
        self, user_id: str, question_id: str
    ) -> QuestionPracticeStats:
        """
        Outcome counts and time spent for one question.

        Raises:
            NotFoundError: If the question doesn't exist or isn't owned by the user
        """
        await self._require_owned(user_id, question_id)

        rows, _ = await self.logs.list_for_question(question_id)
        status_counts = Counter(ReviewStatus(row.status) for row in rows)
        total_duration = sum(row.duration or 0 for row in rows)

        return QuestionPracticeStats(
            question_id=question_id,
            total_practice_count=len(rows),
            forgotten_count=status_counts[ReviewStatus.FORGOTTEN],
            fuzzy_count=status_counts[ReviewStatus.FUZZY],
            mastered_count=status_counts[ReviewStatus.MASTERED],
            total_time_spent=total_duration,
            average_duration=round(total_duration / len(rows)) if rows else 0,
            # Rows are newest first
            last_practiced_at=rows[0].created_at if rows else None,
        )

    async def _require_owned(self, user_id: str, question_id: str) -> None:
        question = await self.questions.get_owned(user_id, question_id)
        if question is None:
            raise NotFoundError(f"Question {question_id} not found")
