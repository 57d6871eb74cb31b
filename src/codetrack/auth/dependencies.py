"""FastAPI authentication dependencies."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from codetrack.auth.service import get_session_user
from codetrack.config import get_settings
from codetrack.database import get_session
from codetrack.db.models import User


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> User:
    """
    Resolve the session cookie to a User.

    Raises 401 when the cookie is missing, unknown or expired.
    """
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = await get_session_user(db, token)
    if user is None:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    return user
