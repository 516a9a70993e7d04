"""Services package for the question bank, tags and the review system."""

from app.services.question_service import QuestionService
from app.services.review import (
    PracticeSessionService,
    ReviewService,
    StatisticsService,
)
from app.services.tag_service import TagService

__all__ = [
    "PracticeSessionService",
    "QuestionService",
    "ReviewService",
    "StatisticsService",
    "TagService",
]
