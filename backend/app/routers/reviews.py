"""
Reviews API Router

Endpoints for review submission, practice sessions and review statistics.

Endpoints:
- GET /api/reviews/pending - Due questions
- POST /api/reviews - Submit a review
- POST /api/reviews/manual - Mark a question reviewed from the question bank
- GET /api/reviews/status-options - Selectable review outcomes
- GET /api/reviews/history - Paginated review log
- GET /api/reviews/stats - Question bank overview
- GET /api/reviews/today-count - Number of due questions
- GET /api/reviews/today-stats - Reviews recorded today
- GET /api/reviews/heatmap - Daily review activity for the last year
- GET /api/reviews/streak - Consecutive review days
- GET /api/reviews/calendar - Review activity of one month
- GET /api/reviews/daily-status - Today's practice progress
- POST /api/reviews/daily/finish - Mark today's practice finished
- POST /api/reviews/daily/reset - Start another round of due questions
- POST /api/reviews/session/start - Start a practice session
- GET /api/reviews/session - Current practice session
- POST /api/reviews/session/{id}/submit - Submit an answer in a session
- POST /api/reviews/session/{id}/status - Set a session's status
- POST /api/reviews/session/{id}/navigate - Previous/next question
- POST /api/reviews/session/{id}/jump - Jump to a question
- GET /api/reviews/question/{id}/history - One question's reviews
- GET /api/reviews/question/{id}/stats - One question's review stats
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.base import get_db
from app.dependencies import get_current_user_id
from app.models.base import SERVICE_ERROR_RESPONSES
from app.models.question import QuestionFilters, QuestionResponse
from app.models.review import (
    CalendarDay,
    DailyPracticeStatus,
    HeatmapDay,
    JumpRequest,
    ManualReviewRequest,
    NavigateRequest,
    PracticeRecordResponse,
    PracticeSessionResponse,
    QuestionPracticeHistoryResponse,
    QuestionPracticeStats,
    ResetPracticeRequest,
    ReviewHistoryResponse,
    ReviewResult,
    ReviewStats,
    SessionSubmitResponse,
    StartPracticeRequest,
    StatusOption,
    StreakData,
    SubmitReviewRequest,
    TodayCount,
    TodayStats,
    UpdateSessionStatusRequest,
)
from app.routers.questions import practice_filters
from app.services.review import (
    PracticeSessionService,
    ReviewService,
    StatisticsService,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/reviews", tags=["reviews"], responses=SERVICE_ERROR_RESPONSES
)


# ===========================================
# Dependency Injection
# ===========================================


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    """Get review service."""
    return ReviewService(db)


async def get_session_service(
    db: AsyncSession = Depends(get_db),
) -> PracticeSessionService:
    """Get practice session service."""
    return PracticeSessionService(db)


async def get_statistics_service(
    db: AsyncSession = Depends(get_db),
) -> StatisticsService:
    """Get review statistics service."""
    return StatisticsService(db)


# ===========================================
# Reviews
# ===========================================


@router.get("/pending", response_model=list[QuestionResponse])
async def get_pending_reviews(
    filters: QuestionFilters = Depends(practice_filters),
    limit: int = Query(settings.PENDING_DEFAULT_LIMIT, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
) -> list[QuestionResponse]:
    """Due questions, earliest due first."""
    return await service.get_pending(user_id, filters, limit=limit)


@router.post("", response_model=ReviewResult)
async def submit_review(
    request: SubmitReviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResult:
    """Record a review outcome and reschedule the question."""
    return await service.submit_review(user_id, request)


@router.post("/manual", response_model=ReviewResult)
async def manual_review(
    request: ManualReviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResult:
    """Mark a question as reviewed from the question bank."""
    return await service.submit_review(
        user_id,
        SubmitReviewRequest(
            question_id=request.question_id,
            status=request.status,
            note=request.note,
        ),
    )


@router.get("/status-options", response_model=list[StatusOption])
async def get_status_options() -> list[StatusOption]:
    return ReviewService.status_options()


# ===========================================
# Statistics
# ===========================================


@router.get("/history", response_model=ReviewHistoryResponse)
async def get_review_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.HISTORY_DEFAULT_PAGE_SIZE, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> ReviewHistoryResponse:
    return await service.get_history(user_id, page=page, page_size=page_size)


@router.get("/stats", response_model=ReviewStats)
async def get_review_stats(
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> ReviewStats:
    return await service.get_stats(user_id)


@router.get("/today-count", response_model=TodayCount)
async def get_today_count(
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> TodayCount:
    return await service.get_today_count(user_id)


@router.get("/today-stats", response_model=TodayStats)
async def get_today_stats(
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> TodayStats:
    return await service.get_today_stats(user_id)


@router.get("/heatmap", response_model=list[HeatmapDay])
async def get_heatmap(
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> list[HeatmapDay]:
    return await service.get_heatmap(user_id)


@router.get("/streak", response_model=StreakData)
async def get_streak(
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> StreakData:
    return await service.get_streak(user_id)


@router.get("/calendar", response_model=dict[str, CalendarDay])
async def get_calendar(
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> dict[str, CalendarDay]:
    """Per-day review count and first status for one month (UTC dates)."""
    return await service.get_calendar(user_id, year, month)


@router.get(
    "/question/{question_id}/history",
    response_model=QuestionPracticeHistoryResponse,
)
async def get_question_history(
    question_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.HISTORY_DEFAULT_PAGE_SIZE, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> QuestionPracticeHistoryResponse:
    return await service.get_question_history(
        user_id, question_id, page=page, page_size=page_size
    )


@router.get("/question/{question_id}/stats", response_model=QuestionPracticeStats)
async def get_question_stats(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    service: StatisticsService = Depends(get_statistics_service),
) -> QuestionPracticeStats:
    return await service.get_question_stats(user_id, question_id)


# ===========================================
# Daily Practice
# ===========================================


@router.get("/daily-status", response_model=DailyPracticeStatus)
async def get_daily_status(
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> DailyPracticeStatus:
    return await service.daily_status(user_id)


@router.post("/daily/finish", response_model=PracticeRecordResponse)
async def finish_daily_practice(
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeRecordResponse:
    return await service.complete_daily_practice(user_id)


@router.post("/daily/reset", response_model=PracticeSessionResponse)
async def reset_daily_practice(
    request: Optional[ResetPracticeRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeSessionResponse:
    """Start another round from due questions only."""
    daily_limit = request.daily_limit if request else None
    return await service.reset(user_id, daily_limit)


# ===========================================
# Practice Sessions
# ===========================================


@router.post("/session/start", response_model=PracticeSessionResponse)
async def start_session(
    request: StartPracticeRequest,
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeSessionResponse:
    """
    Start a practice session.

    Any session still ACTIVE is completed first. Returns 422 (no_candidates)
    when the user has no matching questions.
    """
    return await service.start(user_id, request)


@router.get("/session", response_model=Optional[PracticeSessionResponse])
async def get_session(
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> Optional[PracticeSessionResponse]:
    """Current ACTIVE session, or null."""
    return await service.get(user_id)


@router.post("/session/{session_id}/submit", response_model=SessionSubmitResponse)
async def submit_session_answer(
    session_id: str,
    request: SubmitReviewRequest,
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> SessionSubmitResponse:
    return await service.submit_answer(user_id, session_id, request)


@router.post("/session/{session_id}/status", response_model=PracticeSessionResponse)
async def update_session_status(
    session_id: str,
    request: UpdateSessionStatusRequest,
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeSessionResponse:
    return await service.update_status(user_id, session_id, request.status)


@router.post("/session/{session_id}/navigate", response_model=PracticeSessionResponse)
async def navigate_session(
    session_id: str,
    request: NavigateRequest,
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeSessionResponse:
    return await service.navigate(user_id, session_id, request.direction)


@router.post("/session/{session_id}/jump", response_model=PracticeSessionResponse)
async def jump_in_session(
    session_id: str,
    request: JumpRequest,
    user_id: str = Depends(get_current_user_id),
    service: PracticeSessionService = Depends(get_session_service),
) -> PracticeSessionResponse:
    return await service.jump_to(user_id, session_id, request.question_id)
