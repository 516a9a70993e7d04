"""
Review Scheduler

Fixed-interval spaced repetition. A question's mastery level (0-5) moves
by at most one step per review, and the next review is scheduled from a
table of intervals indexed by level:

    level     0    1    2    3     4     5
    days      0    1    3    7    14    30

Transitions:
- FORGOTTEN: level - 1 (floored at 0), review again tomorrow
- FUZZY: level unchanged, review after the current level's interval
  (level 0 has a 0-day interval, so 1 day is used instead)
- MASTERED: level + 1 (capped at 5), review after the new level's interval

The scheduler is pure: it never reads the clock or touches the database.
Callers add the delay to their own "now".

Usage:
    from app.services.review.scheduler import calculate_next_review

    new_level, delay_days = calculate_next_review(2, ReviewStatus.MASTERED)
    # (3, 7)
"""

from typing import Optional, Sequence

from app.config import settings
from app.enums.review import ReviewStatus

REVIEW_INTERVALS: tuple[int, ...] = tuple(settings.REVIEW_INTERVAL_DAYS)

MASTERY_LABELS: tuple[str, ...] = (
    "unlearned",
    "beginner",
    "familiar",
    "proficient",
    "advanced",
    "expert",
)

# Fallback delays when the interval table has no usable entry
FUZZY_FALLBACK_DAYS = 1
MASTERED_FALLBACK_DAYS = 30


def _interval(intervals: Sequence[int], level: int) -> Optional[int]:
    if 0 <= level < len(intervals):
        return intervals[level]
    return None


def calculate_next_review(
    current_level: int,
    status: ReviewStatus,
    intervals: Sequence[int] = REVIEW_INTERVALS,
    max_level: int = settings.MAX_MASTERY_LEVEL,
) -> tuple[int, int]:
    """
    Compute the mastery level and review delay after one review.

    Args:
        current_level: Mastery level before the review (0 to max_level)
        status: Review outcome
        intervals: Days until next review, indexed by level
        max_level: Highest mastery level

    Returns:
        (new_level, delay_days) with 0 <= new_level <= max_level and
        delay_days >= 1
    """
    status = ReviewStatus(status)

    if status == ReviewStatus.FORGOTTEN:
        return max(0, current_level - 1), settings.FORGOTTEN_DELAY_DAYS

    if status == ReviewStatus.FUZZY:
        # A 0-day interval (level 0) also falls back
        delay = _interval(intervals, current_level) or FUZZY_FALLBACK_DAYS
        return current_level, delay

    new_level = min(max_level, current_level + 1)
    delay = _interval(intervals, new_level)
    return new_level, delay if delay is not None else MASTERED_FALLBACK_DAYS


def mastery_label(level: int) -> str:
    """Human-readable name of a mastery level."""
    if 0 <= level < len(MASTERY_LABELS):
        return MASTERY_LABELS[level]
    return MASTERY_LABELS[-1] if level > 0 else MASTERY_LABELS[0]


def review_message(status: ReviewStatus, new_level: int, delay_days: int) -> str:
    """Feedback message shown after a review is recorded."""
    status = ReviewStatus(status)
    label = mastery_label(new_level)
    day_word = "day" if delay_days == 1 else "days"

    if status == ReviewStatus.FORGOTTEN:
        return f"Keep going! Mastery is now {label}; review again tomorrow."
    if status == ReviewStatus.FUZZY:
        return f"Almost there. Mastery stays {label}; next review in {delay_days} {day_word}."
    return f"Well done! Mastery is now {label}; next review in {delay_days} {day_word}."
