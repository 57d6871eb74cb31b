"""Dashboard Pydantic schemas."""

from __future__ import annotations

from pydantic import Field

from codetrack.platforms.schemas import PlatformData
from codetrack.schemas import CamelModel


class PlatformLink(CamelModel):
    username: str
    is_active: bool


class UserWithStats(CamelModel):
    """The logged-in user with every connected platform's stored stats."""

    id: int
    username: str
    email: str
    full_name: str | None = None
    platforms: dict[str, PlatformLink] = Field(default_factory=dict)
    platform_data: list[PlatformData] = Field(default_factory=list)
    # Kept for clients that predate multi-platform support.
    leetcode_username: str | None = None
