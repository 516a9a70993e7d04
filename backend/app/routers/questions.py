"""
Questions API Router

Endpoints for the user's question bank.

Endpoints:
- POST /api/questions - Create a question
- GET /api/questions - Paginated listing with search
- GET /api/questions/subjects - Distinct subjects for autocomplete
- GET /api/questions/sequential - Questions in creation order
- GET /api/questions/random - Questions in random order
- POST /api/questions/random - Random pick of question ids
- GET /api/questions/by-subject - Questions for focused practice
- GET /api/questions/export - JSON export
- POST /api/questions/import - JSON import
- GET /api/questions/{id} - Get a question
- PUT /api/questions/{id} - Update a question
- DELETE /api/questions/{id} - Delete a question
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import get_db
from app.dependencies import get_current_user_id
from app.enums.review import SortOrder
from app.models.base import SERVICE_ERROR_RESPONSES, SuccessResponse
from app.models.question import (
    ExportData,
    ImportRequest,
    ImportResult,
    QuestionCreate,
    QuestionFilters,
    QuestionListResponse,
    QuestionResponse,
    QuestionUpdate,
    RandomPickRequest,
    RandomPickResponse,
)
from app.services.question_service import QuestionService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/questions", tags=["questions"], responses=SERVICE_ERROR_RESPONSES
)


# ===========================================
# Dependency Injection
# ===========================================


async def get_question_service(
    db: AsyncSession = Depends(get_db),
) -> QuestionService:
    """Get question service."""
    return QuestionService(db)


def practice_filters(
    subjects: list[str] = Query(default=[]),
    tags: list[str] = Query(default=[]),
    min_mastery_level: Optional[int] = Query(None, ge=0, le=5),
    max_mastery_level: Optional[int] = Query(None, ge=0, le=5),
) -> QuestionFilters:
    """Build practice filters from repeated query parameters."""
    try:
        return QuestionFilters(
            subjects=subjects,
            tags=tags,
            min_mastery_level=min_mastery_level,
            max_mastery_level=max_mastery_level,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


# ===========================================
# CRUD
# ===========================================


@router.post("", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    request: QuestionCreate,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> QuestionResponse:
    """Create a question. Unknown tag names are ignored."""
    return await service.create(user_id, request)


@router.get("", response_model=QuestionListResponse)
async def list_questions(
    subject: Optional[str] = None,
    tag: Optional[str] = None,
    mastery_level: Optional[int] = Query(None, ge=0, le=5),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> QuestionListResponse:
    """List questions, newest first."""
    return await service.list_questions(
        user_id,
        subject=subject,
        tag=tag,
        mastery_level=mastery_level,
        search=search,
        page=page,
        page_size=page_size,
    )


@router.get("/subjects", response_model=list[str])
async def list_subjects(
    search: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> list[str]:
    return await service.subjects(user_id, search=search)


# ===========================================
# Practice Listings
# ===========================================


@router.get("/sequential", response_model=list[QuestionResponse])
async def sequential_questions(
    filters: QuestionFilters = Depends(practice_filters),
    limit: int = Query(10, ge=1, le=500),
    order: SortOrder = SortOrder.DESC,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> list[QuestionResponse]:
    return await service.sequential(user_id, filters, limit=limit, order=order)


@router.get("/random", response_model=list[QuestionResponse])
async def random_questions(
    filters: QuestionFilters = Depends(practice_filters),
    limit: int = Query(10, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> list[QuestionResponse]:
    return await service.random_order(user_id, filters, limit=limit, offset=offset)


@router.post("/random", response_model=RandomPickResponse)
async def random_pick(
    request: RandomPickRequest,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> RandomPickResponse:
    """
    Pick random question ids without touching their review schedule.

    Returns 422 (no_candidates) when nothing matches.
    """
    return await service.random_pick(user_id, request)


@router.get("/by-subject", response_model=list[QuestionResponse])
async def questions_by_subject(
    filters: QuestionFilters = Depends(practice_filters),
    limit: int = Query(20, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> list[QuestionResponse]:
    return await service.by_subject(user_id, filters, limit=limit)


# ===========================================
# Import / Export
# ===========================================


@router.get("/export", response_model=ExportData)
async def export_questions(
    include_meta: bool = False,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> ExportData:
    """Export all questions as JSON, optionally with scheduling metadata."""
    return await service.export(user_id, include_meta=include_meta)


@router.post("/import", response_model=ImportResult)
async def import_questions(
    request: ImportRequest,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> ImportResult:
    """Import questions; duplicates are skipped and failures collected."""
    return await service.import_questions(user_id, request)


# ===========================================
# Single Question
# ===========================================


@router.get("/{question_id}", response_model=QuestionResponse)
async def get_question(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> QuestionResponse:
    return await service.get(user_id, question_id)


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: str,
    request: QuestionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> QuestionResponse:
    return await service.update(user_id, question_id, request)


@router.delete("/{question_id}", response_model=SuccessResponse)
async def delete_question(
    question_id: str,
    user_id: str = Depends(get_current_user_id),
    service: QuestionService = Depends(get_question_service),
) -> SuccessResponse:
    return await service.delete(user_id, question_id)
