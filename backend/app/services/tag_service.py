"""
Tag Service

CRUD for user-scoped tags plus helpers used by the question service to
resolve tag names.

Tag names are unique per user. Question create/update only links tags that
already exist; import creates missing ones as CUSTOM tags.

Usage:
    from app.services.tag_service import TagService

    service = TagService(db)

    tag = await service.create(user_id, TagCreate(name="algebra"))
    tags = await service.resolve_names(user_id, ["algebra", "unknown"])  # [algebra]
    result = await service.cleanup_unused(user_id)
"""

import logging
from typing import Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.models import Tag, question_tags
from app.enums.review import TagType
from app.middleware.error_handling import ConflictError, NotFoundError
from app.models.tag import TagCleanupResult, TagCreate, TagResponse, TagUpdate

logger = logging.getLogger(__name__)


class TagService:
    """
    Service for tag management.

    Only CUSTOM tags are removed by cleanup_unused(); SYSTEM tags are kept
    even when no question uses them.
    """

    def __init__(self, db: AsyncSession):
        """Initialize tag service."""
        self.db = db

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create(self, user_id: str, request: TagCreate) -> TagResponse:
        """
        Create a custom tag.

        Raises:
            ConflictError: If the user already has a tag with this name
        """
        if await self._get_by_name(user_id, request.name) is not None:
            raise ConflictError(f"Tag '{request.name}' already exists")

        tag = Tag(
            user_id=user_id,
            name=request.name,
            category=request.category or settings.DEFAULT_TAG_CATEGORY,
            color=request.color or settings.DEFAULT_TAG_COLOR,
            type=TagType.CUSTOM.value,
        )
        self.db.add(tag)
        await self.db.commit()

        logger.info(f"Created tag '{tag.name}' for user {user_id}")
        return TagResponse.model_validate(tag)

    async def list_tags(
        self, user_id: str, category: Optional[str] = None
    ) -> list[TagResponse]:
        """User's tags, newest first, optionally limited to one category."""
        stmt = select(Tag).where(Tag.user_id == user_id)
        if category:
            stmt = stmt.where(Tag.category == category)

        result = await self.db.execute(stmt.order_by(Tag.created_at.desc()))
        return [TagResponse.model_validate(t) for t in result.scalars().all()]

    async def get(self, user_id: str, tag_id: str) -> TagResponse:
        return TagResponse.model_validate(await self._get_owned(user_id, tag_id))

    async def update(
        self, user_id: str, tag_id: str, request: TagUpdate
    ) -> TagResponse:
        """
        Update the given fields of a tag.

        Raises:
            NotFoundError: If the tag doesn't exist or isn't owned by the user
            ConflictError: If renaming to a name the user already uses
        """
        tag = await self._get_owned(user_id, tag_id)

        if request.name is not None and request.name != tag.name:
            if await self._get_by_name(user_id, request.name) is not None:
                raise ConflictError(f"Tag '{request.name}' already exists")

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(tag, field, value)

        await self.db.commit()
        return TagResponse.model_validate(tag)

    async def delete(self, user_id: str, tag_id: str) -> None:
        """Delete a tag and unlink it from all questions."""
        tag = await self._get_owned(user_id, tag_id)

        await self.db.execute(
            delete(question_tags).where(question_tags.c.tag_id == tag.id)
        )
        await self.db.delete(tag)
        await self.db.commit()

        logger.info(f"Deleted tag '{tag.name}' for user {user_id}")

    async def categories(self, user_id: str) -> list[str]:
        """Distinct categories of the user's tags."""
        result = await self.db.execute(
            select(Tag.category)
            .where(Tag.user_id == user_id)
            .distinct()
            .order_by(Tag.category)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def cleanup_unused(self, user_id: Optional[str] = None) -> TagCleanupResult:
        """
        Delete CUSTOM tags that no question uses.

        Args:
            user_id: Restrict cleanup to one user's tags (all users when None)
        """
        in_use = exists().where(question_tags.c.tag_id == Tag.id)
        stmt = select(Tag.id).where(Tag.type == TagType.CUSTOM.value, ~in_use)
        if user_id is not None:
            stmt = stmt.where(Tag.user_id == user_id)

        result = await self.db.execute(stmt)
        unused_ids = list(result.scalars().all())

        if not unused_ids:
            return TagCleanupResult(deleted_count=0, message="No unused tags to remove")

        await self.db.execute(delete(Tag).where(Tag.id.in_(unused_ids)))
        await self.db.commit()

        logger.info(f"Tag cleanup removed {len(unused_ids)} unused tags")
        return TagCleanupResult(
            deleted_count=len(unused_ids),
            message=f"Removed {len(unused_ids)} unused tags",
        )

    # =========================================================================
    # Name Resolution
    # =========================================================================

    async def resolve_names(self, user_id: str, names: list[str]) -> list[Tag]:
        """Existing tags of the user with the given names. Unknown names are dropped."""
        if not names:
            return []
        result = await self.db.execute(
            select(Tag).where(Tag.user_id == user_id, Tag.name.in_(names))
        )
        by_name = {t.name: t for t in result.scalars().all()}
        return [by_name[n] for n in dict.fromkeys(names) if n in by_name]

    async def get_or_create(self, user_id: str, name: str) -> Tag:
        """Existing tag by name, or a new CUSTOM tag (flushed, not committed)."""
        tag = await self._get_by_name(user_id, name)
        if tag is not None:
            return tag

        tag = Tag(
            user_id=user_id,
            name=name,
            category=settings.DEFAULT_TAG_CATEGORY,
            color=settings.DEFAULT_TAG_COLOR,
            type=TagType.CUSTOM.value,
        )
        self.db.add(tag)
        await self.db.flush()
        logger.debug(f"Created tag '{name}' for user {user_id} during import")
        return tag

    async def _get_by_name(self, user_id: str, name: str) -> Optional[Tag]:
        result = await self.db.execute(
            select(Tag).where(Tag.user_id == user_id, Tag.name == name)
        )
        return result.scalar_one_or_none()

    async def _get_owned(self, user_id: str, tag_id: str) -> Tag:
        result = await self.db.execute(
            select(Tag).where(Tag.id == tag_id, Tag.user_id == user_id)
        )
        tag = result.scalar_one_or_none()
        if tag is None:
            raise NotFoundError(f"Tag {tag_id} not found")
        return tag
