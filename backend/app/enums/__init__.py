"""
Centralized enum definitions for the application.

Usage:
    from app.enums import ReviewStatus, PracticeSessionStatus

    # Or import from the specific module
    from app.enums.review import NavigateDirection
"""

from app.enums.review import (
    NavigateDirection,
    PracticeSessionStatus,
    ReviewStatus,
    SortOrder,
    TagType,
)

__all__ = [
    "NavigateDirection",
    "PracticeSessionStatus",
    "ReviewStatus",
    "SortOrder",
    "TagType",
]
