"""Platform endpoints: verify, connect, disconnect and refresh."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from codetrack.auth.dependencies import get_current_user
from codetrack.dashboard.cache import invalidate_dashboard_cache
from codetrack.database import get_session
from codetrack.db.models import User
from codetrack.platforms import storage
from codetrack.platforms.base import PlatformType
from codetrack.platforms.registry import get_adapter
from codetrack.platforms.schemas import (
    AddPlatformRequest,
    AddPlatformResponse,
    DeletePlatformRequest,
    LeetCodeUsernameRequest,
    LeetCodeUsernameResponse,
    MessageResponse,
    PlatformConnection,
    PlatformDataResponse,
    RefreshAllResponse,
    VerifyUsernameRequest,
    VerifyUsernameResponse,
)
from codetrack.platforms.service import ALL_FACETS, Facet, PlatformDataError, refresh_all, refresh_platform

logger = structlog.get_logger()

router = APIRouter(prefix="/api", tags=["Platforms"])


def _parse_platform(value: str) -> PlatformType:
    try:
        return PlatformType.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


async def _refresh_or_500(
    user_id: int,
    platform_type: PlatformType,
    username: str,
    facets: frozenset[Facet] = ALL_FACETS,
) -> PlatformDataResponse:
    try:
        data = await refresh_platform(user_id, platform_type, username, facets)
    except PlatformDataError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return PlatformDataResponse(platform_data=data)


# ---------------------------------------------------------------------------
# Verify / connect / disconnect
# ---------------------------------------------------------------------------


@router.post("/verify/{platform}", response_model=VerifyUsernameResponse)
async def verify_username(
    platform: str,
    body: VerifyUsernameRequest,
    _user: User = Depends(get_current_user),  # noqa: B008
) -> VerifyUsernameResponse:
    """Check whether a username exists on the platform."""
    adapter = get_adapter(_parse_platform(platform))
    return VerifyUsernameResponse(exists=await adapter.check_username(body.username))


@router.post("/platforms/add", response_model=AddPlatformResponse, status_code=201)
async def add_platform(
    body: AddPlatformRequest,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> AddPlatformResponse:
    """Connect a platform account and load its data."""
    platform_type = _parse_platform(body.platform_type)

    if await storage.get_user_platform(db, user.id, platform_type) is not None:
        raise HTTPException(
            status_code=400, detail=f"You have already connected your {platform_type.value} account"
        )
    if not await get_adapter(platform_type).check_username(body.username):
        raise HTTPException(
            status_code=400, detail=f'Username "{body.username}" not found on {platform_type.value}'
        )

    connection = await storage.save_user_platform(user.id, platform_type, body.username)
    logger.info("platform_connected", user_id=user.id, platform=platform_type.value)

    message = "Platform connected successfully"
    try:
        await refresh_platform(user.id, platform_type, body.username)
    except PlatformDataError as e:
        # The connection stands; the next refresh can fill in the data.
        message = f"Platform connected, but its data could not be loaded: {e}"

    await invalidate_dashboard_cache(user.id)
    return AddPlatformResponse(message=message, platform=PlatformConnection.model_validate(connection))


@router.post("/platforms/delete", response_model=MessageResponse)
async def delete_platform(
    body: DeletePlatformRequest,
    user: User = Depends(get_current_user),  # noqa: B008
) -> MessageResponse:
    """Disconnect a platform and delete everything stored for it."""
    platform_type = _parse_platform(body.platform_type)
    if not await storage.delete_user_platform(user.id, platform_type):
        raise HTTPException(status_code=404, detail=f"Platform {platform_type.value} not found")
    await invalidate_dashboard_cache(user.id)
    return MessageResponse(message="Platform disconnected successfully")


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


@router.post("/platforms/refresh", response_model=RefreshAllResponse)
async def refresh_all_platforms(
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> RefreshAllResponse:
    """Refresh every connected platform; per-platform failures are reported, not raised."""
    return RefreshAllResponse(results=await refresh_all(db, user.id))


@router.post("/leetcode/username", response_model=LeetCodeUsernameResponse)
async def set_leetcode_username(
    body: LeetCodeUsernameRequest,
    user: User = Depends(get_current_user),  # noqa: B008
) -> LeetCodeUsernameResponse:
    """Verify a LeetCode username, connect or re-point the account, and refresh it."""
    if not await get_adapter(PlatformType.LEETCODE).check_username(body.leetcode_username):
        raise HTTPException(status_code=400, detail="Invalid LeetCode username")

    await storage.save_user_platform(user.id, PlatformType.LEETCODE, body.leetcode_username)
    try:
        result = await _refresh_or_500(user.id, PlatformType.LEETCODE, body.leetcode_username)
    finally:
        # The connection changed even when the refresh failed.
        await invalidate_dashboard_cache(user.id)
    return LeetCodeUsernameResponse(
        success=True,
        message="LeetCode username updated successfully",
        profile=result.platform_data,
    )


@router.post("/leetcode/refresh/{facet}", response_model=PlatformDataResponse)
async def refresh_leetcode_facet(
    facet: Facet,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PlatformDataResponse:
    """Refresh one slice of the LeetCode data (problems, submissions, badges or contests)."""
    connection = await storage.get_user_platform(db, user.id, PlatformType.LEETCODE)
    if connection is None:
        raise HTTPException(status_code=404, detail="LeetCode platform not connected")
    return await _refresh_or_500(user.id, PlatformType.LEETCODE, connection.username, frozenset({facet}))


@router.post("/{platform}/refresh", response_model=PlatformDataResponse)
async def refresh_one_platform(
    platform: str,
    user: User = Depends(get_current_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> PlatformDataResponse:
    """Refresh everything stored for one connected platform."""
    platform_type = _parse_platform(platform)
    connection = await storage.get_user_platform(db, user.id, platform_type)
    if connection is None:
        raise HTTPException(status_code=404, detail=f"{platform_type.value} platform not connected")
    return await _refresh_or_500(user.id, platform_type, connection.username)
