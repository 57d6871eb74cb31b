"""Per-user dashboard cache in Redis.

Entries are keyed by a per-user generation counter. Invalidation bumps the
counter instead of deleting the entry, so a dashboard built before the bump
is written under the old generation, where nobody reads it, and expires with
its TTL.

Every helper is a no-op when Redis is not configured, and Redis errors are
logged rather than raised: the database stays the source of truth.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from redis.exceptions import RedisError

from codetrack.config import get_settings
from codetrack.redis_client import get_optional_redis

logger = structlog.get_logger()

DASHBOARD_GENERATION_KEY = "dashboard_gen:{user_id}"
DASHBOARD_CACHE_KEY = "dashboard:{user_id}:{generation}"


async def get_cached_dashboard(user_id: int) -> tuple[dict[str, Any] | None, str | None]:
    """Return ``(payload, generation)``.

    ``payload`` is None on a miss. Pass ``generation`` back to
    ``set_cached_dashboard``; it is None when there is nothing to cache into.
    """
    redis = get_optional_redis()
    if redis is None:
        return None, None
    try:
        generation = await redis.get(DASHBOARD_GENERATION_KEY.format(user_id=user_id)) or "0"
        cached = await redis.get(DASHBOARD_CACHE_KEY.format(user_id=user_id, generation=generation))
    except RedisError as e:
        logger.warning("dashboard_cache_read_failed", user_id=user_id, error=str(e))
        return None, None
    return (json.loads(cached) if cached else None), generation


async def set_cached_dashboard(user_id: int, generation: str | None, payload: dict[str, Any]) -> None:
    redis = get_optional_redis()
    if redis is None or generation is None:
        return
    try:
        await redis.setex(
            DASHBOARD_CACHE_KEY.format(user_id=user_id, generation=generation),
            get_settings().dashboard_cache_ttl_seconds,
            json.dumps(payload),
        )
    except RedisError as e:
        logger.warning("dashboard_cache_write_failed", user_id=user_id, error=str(e))


async def invalidate_dashboard_cache(user_id: int) -> None:
    """Retire the cached dashboard after any change to the user's platform data."""
    redis = get_optional_redis()
    if redis is None:
        return
    try:
        await redis.incr(DASHBOARD_GENERATION_KEY.format(user_id=user_id))
    except RedisError as e:
        logger.warning("dashboard_cache_invalidate_failed", user_id=user_id, error=str(e))
