"""Dashboard aggregation.

Combines the user's connections and the stored stats of each active platform
into a single ``UserWithStats``. Results are cached in Redis for a few seconds
under the generation read before the build, so a build that overlaps a
refresh cannot resurrect the data the refresh replaced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from codetrack.dashboard.cache import get_cached_dashboard, set_cached_dashboard
from codetrack.dashboard.schemas import PlatformLink, UserWithStats
from codetrack.platforms import storage
from codetrack.platforms.base import PlatformType
from codetrack.platforms.service import load_platform_data

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from codetrack.db.models import User

logger = structlog.get_logger()


async def get_dashboard(db: AsyncSession, user: User) -> UserWithStats:
    """Build (or serve from cache) the dashboard for ``user``."""
    cached, generation = await get_cached_dashboard(user.id)
    if cached is not None:
        return UserWithStats.model_validate(cached)

    connections = await storage.get_user_platforms(db, user.id)
    platforms = {c.platform_type: PlatformLink(username=c.username, is_active=c.is_active) for c in connections}

    platform_data = []
    for connection in connections:
        if not connection.is_active:
            continue
        platform_data.append(
            await load_platform_data(db, user.id, PlatformType(connection.platform_type), connection.username)
        )

    leetcode = platforms.get(PlatformType.LEETCODE.value)
    dashboard = UserWithStats(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        platforms=platforms,
        platform_data=platform_data,
        leetcode_username=leetcode.username if leetcode else None,
    )
    await set_cached_dashboard(user.id, generation, dashboard.model_dump(mode="json", by_alias=True))
    logger.debug("dashboard_built", user_id=user.id, platforms=len(platform_data))
    return dashboard
