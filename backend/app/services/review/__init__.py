"""
Review Services

Spaced-repetition scheduling, practice sessions and review statistics.

Usage:
    from app.services.review import (
        PracticeSessionService,
        ReviewService,
        StatisticsService,
        calculate_next_review,
    )
"""

from app.services.review.review_service import ReviewService
from app.services.review.scheduler import (
    REVIEW_INTERVALS,
    calculate_next_review,
    mastery_label,
    review_message,
)
from app.services.review.session_service import PracticeSessionService
from app.services.review.statistics import (
    StatisticsService,
    calculate_current_streak,
    calculate_intensity,
    calculate_longest_streak,
)

__all__ = [
    "REVIEW_INTERVALS",
    "PracticeSessionService",
    "ReviewService",
    "StatisticsService",
    "calculate_current_streak",
    "calculate_intensity",
    "calculate_longest_streak",
    "calculate_next_review",
    "mastery_label",
    "review_message",
]
