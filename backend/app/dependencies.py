"""
FastAPI Dependencies

Common dependencies for user identity.

Authentication itself happens upstream (API gateway or auth proxy); by the
time a request reaches this service the caller's opaque user id is carried
in the X-User-Id header.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

# User id header scheme
user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)


async def get_current_user_id(
    user_id: str | None = Depends(user_id_header),
) -> str:
    """
    Resolve the calling user's id.

    Returns:
        str: The opaque user id

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity. Provide X-User-Id header.",
            headers={"WWW-Authenticate": "X-User-Id"},
        )
    return user_id.strip()

