"""API helpers shared by the integration tests."""

from typing import Optional

import httpx


async def create_question(
    client: httpx.AsyncClient,
    content: str = "What is 2 + 2?",
    subject: str = "math",
    tags: Optional[list[str]] = None,
    **fields,
) -> dict:
    """Create a question through the API and return its JSON."""
    payload = {
        "content": content,
        "answer": fields.pop("answer", f"Answer to {content}"),
        "subject": subject,
        "tags": tags or [],
        **fields,
    }
    response = await client.post("/api/questions", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def create_tag(client: httpx.AsyncClient, name: str, **fields) -> dict:
    response = await client.post("/api/tags", json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


async def review(
    client: httpx.AsyncClient, question_id: str, status: str = "MASTERED", **fields
) -> dict:
    response = await client.post(
        "/api/reviews",
        json={"question_id": question_id, "status": status, **fields},
    )
    assert response.status_code == 200, response.text
    return response.json()
