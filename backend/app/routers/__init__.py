"""API Routers package."""

from app.routers import health as health_router
from app.routers import questions as questions_router
from app.routers import reviews as reviews_router
from app.routers import tags as tags_router

__all__ = ["health_router", "questions_router", "reviews_router", "tags_router"]
