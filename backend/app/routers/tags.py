"""
Tags API Router

Endpoints for user-scoped tags.

Endpoints:
- POST /api/tags - Create a tag
- GET /api/tags - List tags (optionally by category)
- GET /api/tags/categories - Distinct tag categories
- POST /api/tags/cleanup - Remove CUSTOM tags no question uses
- GET /api/tags/{id} - Get a tag
- PUT /api/tags/{id} - Update a tag
- DELETE /api/tags/{id} - Delete a tag
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import get_db
from app.dependencies import get_current_user_id
from app.models.base import SERVICE_ERROR_RESPONSES, SuccessResponse
from app.models.tag import TagCleanupResult, TagCreate, TagResponse, TagUpdate
from app.services.tag_service import TagService

router = APIRouter(
    prefix="/api/tags", tags=["tags"], responses=SERVICE_ERROR_RESPONSES
)


async def get_tag_service(db: AsyncSession = Depends(get_db)) -> TagService:
    """Get tag service."""
    return TagService(db)


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagCreate,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> TagResponse:
    """Create a tag. Returns 409 (conflict) if the name is taken."""
    return await service.create(user_id, request)


@router.get("", response_model=list[TagResponse])
async def list_tags(
    category: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> list[TagResponse]:
    return await service.list_tags(user_id, category=category)


@router.get("/categories", response_model=list[str])
async def list_categories(
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> list[str]:
    return await service.categories(user_id)


@router.post("/cleanup", response_model=TagCleanupResult)
async def cleanup_tags(
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> TagCleanupResult:
    """Remove the caller's CUSTOM tags that no question uses."""
    return await service.cleanup_unused(user_id)


@router.get("/{tag_id}", response_model=TagResponse)
async def get_tag(
    tag_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> TagResponse:
    return await service.get(user_id, tag_id)


@router.put("/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: str,
    request: TagUpdate,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> TagResponse:
    return await service.update(user_id, tag_id, request)


@router.delete("/{tag_id}", response_model=SuccessResponse)
async def delete_tag(
    tag_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TagService = Depends(get_tag_service),
) -> SuccessResponse:
    await service.delete(user_id, tag_id)
    return SuccessResponse(message="Tag deleted")
