"""
Platform refresh pipeline.

Fetches a profile through the platform adapter, derives the requested facets
and persists each one independently. A failed facet write does not roll back
the facets already stored.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from codetrack.dashboard.cache import invalidate_dashboard_cache
from codetrack.database import with_transaction
from codetrack.platforms import storage
from codetrack.platforms.base import DataStatus, PlatformType
from codetrack.platforms.registry import get_adapter
from codetrack.platforms.schemas import (
    BadgeItem,
    ContestItem,
    LanguageStatItem,
    PlatformData,
    ProfileStats,
    RefreshOutcome,
    SubmissionStatItem,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class PlatformDataError(Exception):
    """The platform could not supply a profile, so nothing was refreshed."""


class Facet(str, Enum):
    """Independently refreshable slices of a platform's data."""

    PROBLEMS = "problems"  # solved counts and language breakdown
    SUBMISSIONS = "submissions"
    BADGES = "badges"
    CONTESTS = "contests"


ALL_FACETS = frozenset(Facet)


async def refresh_platform(
    user_id: int,
    platform_type: PlatformType,
    username: str,
    facets: frozenset[Facet] = ALL_FACETS,
) -> PlatformData:
    """
    Re-fetch one platform for one user and persist the chosen facets.

    The profile row is always upserted since every facet hangs off it.

    Raises:
        PlatformDataError: If the adapter reports the profile as unavailable.
    """
    adapter = get_adapter(platform_type)
    result = await adapter.fetch_profile(username)
    if result.profile is None:
        logger.warning("platform_refresh_failed", user_id=user_id, platform=platform_type.value, reason=result.reason)
        msg = f"Failed to fetch {platform_type.value} data: {result.reason or 'no profile data'}"
        raise PlatformDataError(msg)

    profile = result.profile
    contests = await adapter.fetch_contests(profile) if Facet.CONTESTS in facets else None

    await storage.upsert_platform_profile(
        user_id,
        platform_type,
        profile,
        result.status,
        reason=result.reason,
        contest_attended=len(contests) if contests is not None else None,
    )
    if Facet.PROBLEMS in facets:
        await storage.replace_language_stats(user_id, platform_type, await adapter.fetch_languages(profile))
    if Facet.SUBMISSIONS in facets:
        await storage.replace_submission_stats(user_id, platform_type, await adapter.fetch_submissions(profile))
    if Facet.BADGES in facets:
        await storage.replace_badges(user_id, platform_type, adapter.fetch_badges(profile))
    if contests is not None:
        await storage.replace_contest_history(user_id, platform_type, contests)

    await invalidate_dashboard_cache(user_id)
    logger.info(
        "platform_refreshed",
        user_id=user_id,
        platform=platform_type.value,
        facets=sorted(f.value for f in facets),
        data_status=result.status.value,
    )
    return await with_transaction(lambda session: load_platform_data(session, user_id, platform_type, username))


async def refresh_all(db: AsyncSession, user_id: int) -> list[RefreshOutcome]:
    """Refresh every active connection concurrently; one failure does not stop the others."""
    connections = [c for c in await storage.get_user_platforms(db, user_id) if c.is_active]
    results = await asyncio.gather(
        *(refresh_platform(user_id, PlatformType(c.platform_type), c.username) for c in connections),
        return_exceptions=True,
    )

    outcomes: list[RefreshOutcome] = []
    for connection, outcome in zip(connections, results, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, PlatformDataError):
                logger.error(
                    "platform_refresh_crashed",
                    user_id=user_id,
                    platform=connection.platform_type,
                    exc_info=outcome,
                )
            outcomes.append(
                RefreshOutcome(platform_type=connection.platform_type, success=False, error=str(outcome))
            )
        else:
            outcomes.append(
                RefreshOutcome(
                    platform_type=connection.platform_type,
                    success=True,
                    data_status=outcome.profile.data_status,
                )
            )
    return outcomes


async def load_platform_data(
    db: AsyncSession,
    user_id: int,
    platform_type: PlatformType,
    username: str,
) -> PlatformData:
    """Assemble the stored rows for one connection into the dashboard shape."""
    profile = await storage.get_platform_profile(db, user_id, platform_type)
    submissions = await storage.get_submission_stats(db, user_id, platform_type)
    languages = await storage.get_language_stats(db, user_id, platform_type)
    badges = await storage.get_badges(db, user_id, platform_type)
    contests = await storage.get_contest_history(db, user_id, platform_type)

    if profile is None:
        stats = ProfileStats(data_status=DataStatus.UNAVAILABLE.value)
    else:
        stats = ProfileStats(
            total_solved=profile.total_solved,
            easy_solved=profile.easy_solved,
            medium_solved=profile.medium_solved,
            hard_solved=profile.hard_solved,
            total_submissions=profile.total_submissions,
            acceptance_rate=profile.acceptance_rate,
            ranking=profile.ranking,
            contest_attended=profile.contest_attended,
            additional_data=profile.additional_data or {},
            data_status=profile.data_status,
            status_reason=profile.status_reason,
            last_updated=profile.last_updated,
        )

    return PlatformData(
        platform_type=platform_type.value,
        username=username,
        profile=stats,
        submission_stats=[SubmissionStatItem(date=s.date, count=s.count) for s in submissions],
        language_stats=[
            LanguageStatItem(language=lang.language, count=lang.count, percentage=lang.percentage)
            for lang in languages
        ],
        badges=[BadgeItem(name=b.name, description=b.description, icon=b.icon) for b in badges],
        contest_history=[
            ContestItem(contest_name=c.contest_name, ranking=c.ranking, score=c.score, date=c.date)
            for c in contests
        ],
    )
