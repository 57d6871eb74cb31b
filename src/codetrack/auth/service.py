"""
Authentication business logic.

Handles user creation, credential checks, account lockout and server-side sessions.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from redis.exceptions import RedisError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from codetrack.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from codetrack.config import get_settings
from codetrack.db.models import User, UserSession

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by exact username."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> User:
    """
    Create a user with a hashed password.

    Raises:
        ValueError: If the username or email is taken, or the password fails the length policy.
    """
    validate_password_strength(password)

    if await get_user_by_username(db, username) is not None:
        msg = "Username already exists"
        raise ValueError(msg)
    if await get_user_by_email(db, email) is not None:
        msg = "Email already exists"
        raise ValueError(msg)

    user = User(
        username=username,
        email=email.lower().strip(),
        password_hash=hash_password(password),
        full_name=full_name,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race against a concurrent registration with the same identity.
        await db.rollback()
        msg = "Username or email already exists"
        raise ValueError(msg) from e
    logger.info("user_created", user_id=user.id, username=username)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(
    db: AsyncSession,
    redis: Redis | None,
    username: str,
    password: str,
) -> User:
    """
    Authenticate a user with username + password.

    Raises:
        ValueError: If credentials are invalid.
        PermissionError: If the account is temporarily locked.
    """
    user = await get_user_by_username(db, username)
    if user is None:
        msg = "Invalid username or password"
        raise ValueError(msg)

    if await check_account_lockout(redis, user.id):
        msg = "Account temporarily locked. Try again later."
        raise PermissionError(msg)

    if not verify_password(password, user.password_hash):
        await increment_failed_login(redis, user.id)
        logger.info("login_failed", user_id=user.id)
        msg = "Invalid username or password"
        raise ValueError(msg)

    await clear_failed_login(redis, user.id)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()
        logger.info("password_rehashed", user_id=user.id)

    return user


# ---------------------------------------------------------------------------
# Account lockout (Redis; skipped when Redis is unavailable)
# ---------------------------------------------------------------------------


async def check_account_lockout(redis: Redis | None, user_id: int) -> bool:
    """Check if the account is locked due to too many failed login attempts."""
    if redis is None:
        return False
    settings = get_settings()
    try:
        count_str = await redis.get(f"login_attempts:{user_id}")
    except RedisError as e:
        logger.warning("lockout_check_failed", user_id=user_id, error=str(e))
        return False
    if count_str is None:
        return False
    return int(count_str) >= settings.account_lockout_threshold


async def increment_failed_login(redis: Redis | None, user_id: int) -> int:
    """Increment failed login counter. Returns the new count (0 without Redis)."""
    if redis is None:
        return 0
    settings = get_settings()
    key = f"login_attempts:{user_id}"
    try:
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, settings.account_lockout_duration_minutes * 60)
    except RedisError as e:
        logger.warning("lockout_increment_failed", user_id=user_id, error=str(e))
        return 0
    return int(count)


async def clear_failed_login(redis: Redis | None, user_id: int) -> None:
    """Clear the failed login counter after a successful login."""
    if redis is None:
        return
    try:
        await redis.delete(f"login_attempts:{user_id}")
    except RedisError as e:
        logger.warning("lockout_clear_failed", user_id=user_id, error=str(e))


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def _hash_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def create_session(
    db: AsyncSession,
    user_id: int,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> str:
    """
    Persist a new session for ``user_id``.

    Returns the raw token for the cookie; only its SHA-256 is stored.
    """
    settings = get_settings()
    raw_token = secrets.token_urlsafe(32)
    sess: dict[str, Any] = {"ip": ip_address, "userAgent": user_agent}
    db.add(
        UserSession(
            sid=_hash_token(raw_token),
            user_id=user_id,
            sess=sess,
            expire=datetime.now(timezone.utc) + timedelta(days=settings.session_ttl_days),
        )
    )
    await db.flush()
    return raw_token


async def get_session_user(db: AsyncSession, raw_token: str) -> User | None:
    """Resolve a cookie token to its user, ignoring expired sessions."""
    result = await db.execute(
        select(User)
        .join(UserSession, UserSession.user_id == User.id)
        .where(UserSession.sid == _hash_token(raw_token))
        .where(UserSession.expire > datetime.now(timezone.utc))
    )
    return result.scalar_one_or_none()


async def delete_session(db: AsyncSession, raw_token: str) -> bool:
    """Delete a session. Returns True if one existed."""
    result = await db.execute(delete(UserSession).where(UserSession.sid == _hash_token(raw_token)))
    await db.flush()
    return bool(result.rowcount)


async def purge_expired_sessions(db: AsyncSession) -> int:
    """Remove expired sessions. Returns the number deleted."""
    result = await db.execute(delete(UserSession).where(UserSession.expire <= datetime.now(timezone.utc)))
    await db.flush()
    return result.rowcount  # type: ignore[return-value]
