"""Persistence for platform connections and per-platform stats.

Reads take the caller's session. Every write runs in ``with_transaction`` on
its own connection, so a multi-row replace is all-or-nothing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select

from codetrack.database import with_transaction
from codetrack.db.models import (
    Badge,
    ContestHistory,
    LanguageStat,
    PlatformProfile,
    SubmissionStat,
    UserPlatform,
)
from codetrack.platforms.base import (
    BadgeInfo,
    ContestEntry,
    DataStatus,
    LanguageCount,
    PlatformType,
    ProfileSnapshot,
    SubmissionDay,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Tables holding rows owned by a (user, platform) connection.
_DEPENDENT_MODELS = (SubmissionStat, LanguageStat, Badge, ContestHistory, PlatformProfile)


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


async def get_user_platforms(db: AsyncSession, user_id: int) -> list[UserPlatform]:
    result = await db.execute(
        select(UserPlatform).where(UserPlatform.user_id == user_id).order_by(UserPlatform.id)
    )
    return list(result.scalars().all())


async def get_user_platform(db: AsyncSession, user_id: int, platform_type: PlatformType) -> UserPlatform | None:
    result = await db.execute(
        select(UserPlatform)
        .where(UserPlatform.user_id == user_id)
        .where(UserPlatform.platform_type == platform_type.value)
    )
    return result.scalar_one_or_none()


async def _delete_dependents(session: AsyncSession, user_id: int, platform_type: PlatformType) -> None:
    for model in _DEPENDENT_MODELS:
        await session.execute(
            delete(model).where(model.user_id == user_id).where(model.platform_type == platform_type.value)
        )


async def save_user_platform(user_id: int, platform_type: PlatformType, username: str) -> UserPlatform:
    """Create the connection or point it at ``username``.

    When the external account changes, the stats stored for the old account are
    dropped in the same transaction.
    """

    async def _save(session: AsyncSession) -> UserPlatform:
        connection = await get_user_platform(session, user_id, platform_type)
        if connection is None:
            connection = UserPlatform(
                user_id=user_id,
                platform_type=platform_type.value,
                username=username,
                is_active=True,
                created_at=datetime.now(timezone.utc),
            )
            session.add(connection)
        else:
            if connection.username != username:
                await _delete_dependents(session, user_id, platform_type)
                connection.username = username
                logger.info("platform_account_changed", user_id=user_id, platform=platform_type.value)
            connection.is_active = True
        await session.flush()
        return connection

    return await with_transaction(_save)


async def delete_user_platform(user_id: int, platform_type: PlatformType) -> bool:
    """Remove a connection and every row it owns. Returns False if it did not exist."""

    async def _delete(session: AsyncSession) -> bool:
        result = await session.execute(
            delete(UserPlatform)
            .where(UserPlatform.user_id == user_id)
            .where(UserPlatform.platform_type == platform_type.value)
        )
        if not result.rowcount:
            return False
        await _delete_dependents(session, user_id, platform_type)
        return True

    deleted = await with_transaction(_delete)
    if deleted:
        logger.info("platform_disconnected", user_id=user_id, platform=platform_type.value)
    return deleted


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def get_platform_profile(
    db: AsyncSession, user_id: int, platform_type: PlatformType
) -> PlatformProfile | None:
    result = await db.execute(
        select(PlatformProfile)
        .where(PlatformProfile.user_id == user_id)
        .where(PlatformProfile.platform_type == platform_type.value)
    )
    return result.scalar_one_or_none()


async def upsert_platform_profile(
    user_id: int,
    platform_type: PlatformType,
    snapshot: ProfileSnapshot,
    status: DataStatus,
    reason: str | None = None,
    contest_attended: int | None = None,
) -> None:
    """Insert or overwrite the profile row. ``contest_attended`` is kept when None."""

    async def _upsert(session: AsyncSession) -> None:
        row = await get_platform_profile(session, user_id, platform_type)
        if row is None:
            row = PlatformProfile(user_id=user_id, platform_type=platform_type.value)
            session.add(row)
        row.total_solved = snapshot.total_solved
        row.easy_solved = snapshot.easy_solved
        row.medium_solved = snapshot.medium_solved
        row.hard_solved = snapshot.hard_solved
        row.total_submissions = snapshot.total_submissions
        row.acceptance_rate = snapshot.acceptance_rate
        row.ranking = snapshot.ranking
        row.additional_data = dict(snapshot.additional_data)
        row.data_status = status.value
        row.status_reason = reason
        row.last_updated = datetime.now(timezone.utc)
        if contest_attended is not None:
            row.contest_attended = contest_attended

    await with_transaction(_upsert)


# ---------------------------------------------------------------------------
# Facet replacement (delete-then-insert)
# ---------------------------------------------------------------------------


async def _replace(model: type, user_id: int, platform_type: PlatformType, rows: list) -> None:
    async def _run(session: AsyncSession) -> None:
        await session.execute(
            delete(model).where(model.user_id == user_id).where(model.platform_type == platform_type.value)
        )
        session.add_all(rows)

    await with_transaction(_run)


async def replace_submission_stats(user_id: int, platform_type: PlatformType, days: list[SubmissionDay]) -> None:
    # Same-day entries are summed so the (user, platform, date) key stays unique.
    per_day: dict = {}
    for day in days:
        per_day[day.date] = per_day.get(day.date, 0) + day.count
    rows = [
        SubmissionStat(user_id=user_id, platform_type=platform_type.value, date=day, count=count)
        for day, count in sorted(per_day.items())
    ]
    await _replace(SubmissionStat, user_id, platform_type, rows)


async def replace_language_stats(user_id: int, platform_type: PlatformType, languages: list[LanguageCount]) -> None:
    rows = [
        LanguageStat(
            user_id=user_id,
            platform_type=platform_type.value,
            language=lang.language,
            count=lang.count,
            percentage=lang.percentage,
        )
        for lang in languages
    ]
    await _replace(LanguageStat, user_id, platform_type, rows)


async def replace_badges(user_id: int, platform_type: PlatformType, badges: list[BadgeInfo]) -> None:
    rows = [
        Badge(
            user_id=user_id,
            platform_type=platform_type.value,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
        )
        for badge in badges
    ]
    await _replace(Badge, user_id, platform_type, rows)


async def replace_contest_history(user_id: int, platform_type: PlatformType, contests: list[ContestEntry]) -> None:
    rows = [
        ContestHistory(
            user_id=user_id,
            platform_type=platform_type.value,
            contest_name=contest.contest_name,
            ranking=contest.ranking,
            score=contest.score,
            date=contest.date,
        )
        for contest in contests
    ]
    await _replace(ContestHistory, user_id, platform_type, rows)


# ---------------------------------------------------------------------------
# Facet reads
# ---------------------------------------------------------------------------


async def get_submission_stats(db: AsyncSession, user_id: int, platform_type: PlatformType) -> list[SubmissionStat]:
    result = await db.execute(
        select(SubmissionStat)
        .where(SubmissionStat.user_id == user_id)
        .where(SubmissionStat.platform_type == platform_type.value)
        .order_by(SubmissionStat.date)
    )
    return list(result.scalars().all())


async def get_language_stats(db: AsyncSession, user_id: int, platform_type: PlatformType) -> list[LanguageStat]:
    result = await db.execute(
        select(LanguageStat)
        .where(LanguageStat.user_id == user_id)
        .where(LanguageStat.platform_type == platform_type.value)
        .order_by(LanguageStat.count.desc(), LanguageStat.id)
    )
    return list(result.scalars().all())


async def get_badges(db: AsyncSession, user_id: int, platform_type: PlatformType) -> list[Badge]:
    result = await db.execute(
        select(Badge)
        .where(Badge.user_id == user_id)
        .where(Badge.platform_type == platform_type.value)
        .order_by(Badge.id)
    )
    return list(result.scalars().all())


async def get_contest_history(db: AsyncSession, user_id: int, platform_type: PlatformType) -> list[ContestHistory]:
    result = await db.execute(
        select(ContestHistory)
        .where(ContestHistory.user_id == user_id)
        .where(ContestHistory.platform_type == platform_type.value)
        .order_by(ContestHistory.date.desc(), ContestHistory.id)
    )
    return list(result.scalars().all())
