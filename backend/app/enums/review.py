"""
Review System Enums

Defines enums for review outcomes, practice session lifecycle and tags.
"""

from enum import Enum


class ReviewStatus(str, Enum):
    """
    Outcome of a single review, reported by the learner.

    Drives the mastery level transition:
    - FORGOTTEN: level drops by one, review again tomorrow
    - FUZZY: level unchanged, review after the current level's interval
    - MASTERED: level rises by one, review after the new level's interval
    """

    FORGOTTEN = "FORGOTTEN"
    FUZZY = "FUZZY"
    MASTERED = "MASTERED"


class PracticeSessionStatus(str, Enum):
    """
    Practice session lifecycle.

    State transitions:
    - ACTIVE → COMPLETED (all questions submitted, or explicit update)
    - ACTIVE → TOMORROW (rest of the round deferred to the next day)

    COMPLETED and TOMORROW are terminal; a new round is a new session.
    """

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    TOMORROW = "TOMORROW"


class NavigateDirection(str, Enum):
    """Cursor movement within a practice session."""

    PREV = "prev"
    NEXT = "next"


class TagType(str, Enum):
    """Origin of a tag."""

    SYSTEM = "SYSTEM"  # Seeded, never cleaned up
    CUSTOM = "CUSTOM"  # Created by the user or by import


class SortOrder(str, Enum):
    """Creation-time ordering for sequential listings."""

    ASC = "asc"
    DESC = "desc"
