"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from codetrack.auth.dependencies import get_current_user
from codetrack.auth.password import PasswordStrengthError
from codetrack.auth.schemas import AuthResponse, LoginRequest, LogoutResponse, RegisterRequest, UserResponse
from codetrack.auth.service import authenticate_user, create_session, delete_session, register_user
from codetrack.config import get_settings
from codetrack.database import get_session
from codetrack.db.models import User
from codetrack.redis_client import get_optional_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


async def _start_session(db: AsyncSession, user: User, request: Request, response: Response) -> None:
    """Create a session row, commit, and set the session cookie."""
    settings = get_settings()
    token = await create_session(
        db,
        user.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    await db.commit()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> AuthResponse:
    """Create an account and log it in."""
    try:
        user = await register_user(
            db,
            username=body.username,
            email=body.email,
            password=body.password,
            full_name=body.full_name,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    await _start_session(db, user, request, response)
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: Redis | None = Depends(get_optional_redis),  # noqa: B008
) -> AuthResponse:
    """Login with username + password."""
    try:
        user = await authenticate_user(db, redis, body.username, body.password)
    except PermissionError as e:
        raise HTTPException(status_code=429, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    await _start_session(db, user, request, response)
    logger.info("user_logged_in", user_id=user.id)
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> LogoutResponse:
    """Delete the current session, if any, and clear the cookie."""
    settings = get_settings()
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        await delete_session(db, token)
        await db.commit()
    response.delete_cookie(settings.session_cookie_name, httponly=True, samesite="lax")
    return LogoutResponse()


@router.get("/me", response_model=AuthResponse)
async def me(user: User = Depends(get_current_user)) -> AuthResponse:  # noqa: B008
    """Return the logged-in user."""
    return AuthResponse(user=UserResponse.model_validate(user))
