"""
Integration Tests for the Tags API

Covers tag CRUD, categories and cleanup of unused CUSTOM tags.

Run with: pytest tests/integration/test_tags_api.py -v
"""

import pytest

from app.db.models import Tag
from app.enums.review import TagType
from app.services.tag_service import TagService
from tests.factories import OTHER_USER_ID, USER_ID
from tests.integration.helpers import create_question, create_tag

pytestmark = pytest.mark.integration


class TestTagCrud:
    @pytest.mark.asyncio
    async def test_create_with_defaults(self, test_client):
        tag = await create_tag(test_client, "algebra")

        assert tag["category"] == "custom"
        assert tag["color"] == "#1890ff"
        assert tag["type"] == "CUSTOM"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_409(self, test_client):
        await create_tag(test_client, "algebra")

        response = await test_client.post("/api/tags", json={"name": "algebra"})

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_same_name_allowed_for_other_user(
        self, test_client, other_user_headers
    ):
        await create_tag(test_client, "algebra")

        response = await test_client.post(
            "/api/tags", json={"name": "algebra"}, headers=other_user_headers
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_list_by_category_and_categories(self, test_client):
        await create_tag(test_client, "algebra", category="math")
        await create_tag(test_client, "optics", category="physics")

        math_tags = (await test_client.get("/api/tags?category=math")).json()
        categories = (await test_client.get("/api/tags/categories")).json()

        assert [t["name"] for t in math_tags] == ["algebra"]
        assert categories == ["math", "physics"]

    @pytest.mark.asyncio
    async def test_rename_conflict(self, test_client):
        await create_tag(test_client, "algebra")
        tag = await create_tag(test_client, "geometry")

        conflict = await test_client.put(
            f"/api/tags/{tag['id']}", json={"name": "algebra"}
        )
        renamed = await test_client.put(
            f"/api/tags/{tag['id']}", json={"name": "shapes", "color": "#000000"}
        )

        assert conflict.status_code == 409
        assert renamed.json()["name"] == "shapes"
        assert renamed.json()["color"] == "#000000"

    @pytest.mark.asyncio
    async def test_delete_unlinks_questions(self, test_client):
        tag = await create_tag(test_client, "algebra")
        question = await create_question(test_client, tags=["algebra"])

        response = await test_client.delete(f"/api/tags/{tag['id']}")

        assert response.json()["success"] is True
        stored = (await test_client.get(f"/api/questions/{question['id']}")).json()
        assert stored["tags"] == []
        assert (await test_client.get(f"/api/tags/{tag['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_other_users_tag_is_404(self, test_client, other_user_headers):
        tag = await create_tag(test_client, "algebra")

        response = await test_client.get(
            f"/api/tags/{tag['id']}", headers=other_user_headers
        )

        assert response.status_code == 404


class TestCleanup:
    @pytest.mark.asyncio
    async def test_removes_only_unused_custom_tags(self, test_client, db_session):
        await create_tag(test_client, "used")
        await create_tag(test_client, "unused")
        await create_question(test_client, tags=["used"])
        db_session.add(
            Tag(user_id=USER_ID, name="seeded", type=TagType.SYSTEM.value)
        )
        await db_session.commit()

        result = (await test_client.post("/api/tags/cleanup")).json()

        assert result["deleted_count"] == 1
        names = sorted(t["name"] for t in (await test_client.get("/api/tags")).json())
        assert names == ["seeded", "used"]

    @pytest.mark.asyncio
    async def test_nothing_to_remove(self, test_client):
        result = (await test_client.post("/api/tags/cleanup")).json()

        assert result["deleted_count"] == 0

    @pytest.mark.asyncio
    async def test_scheduled_cleanup_spans_all_users(self, db_session):
        db_session.add_all(
            [
                Tag(user_id=USER_ID, name="a"),
                Tag(user_id=OTHER_USER_ID, name="b"),
            ]
        )
        await db_session.commit()

        result = await TagService(db_session).cleanup_unused()

        assert result.deleted_count == 2
