"""Redis connection pool for the dashboard cache and the login lockout counter.

Redis is optional: when ``init_redis`` was never called, ``get_optional_redis``
returns None and callers skip their Redis work.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None

# A dead Redis must fail fast; both consumers fall back to the database.
_SOCKET_TIMEOUT_SECONDS = 2.0


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=_SOCKET_TIMEOUT_SECONDS,
        socket_timeout=_SOCKET_TIMEOUT_SECONDS,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_optional_redis() -> redis.Redis | None:
    """Get the Redis client, or None when Redis is not configured for this process."""
    return _pool
