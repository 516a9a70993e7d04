"""
Fixit API

FastAPI application for the Fixit mistake notebook: a question bank with
spaced-repetition review, practice sessions and review statistics.

Run:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.base import init_db
from app.middleware import setup_error_handling
from app.routers import health_router, questions_router, reviews_router, tags_router
from app.services.scheduler import start_scheduler, stop_scheduler


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


setup_logging(settings.DEBUG)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start scheduled jobs; stop them on shutdown."""
    await init_db()
    logger.info(f"{settings.APP_NAME} database initialized")

    if settings.SCHEDULER_ENABLED:
        start_scheduler()

    yield

    if settings.SCHEDULER_ENABLED:
        stop_scheduler()


app = FastAPI(title=f"{settings.APP_NAME} API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_error_handling(app, debug=settings.DEBUG)

app.include_router(health_router.router)
app.include_router(questions_router.router)
app.include_router(tags_router.router)
app.include_router(reviews_router.router)


@app.get("/")
async def root():
    return {"message": f"{settings.APP_NAME} API"}
