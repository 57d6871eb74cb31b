"""Request/response schemas for platform endpoints."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import Field, field_validator

from codetrack.schemas import CamelModel


class ProfileStats(CamelModel):
    total_solved: int | None = None
    easy_solved: int | None = None
    medium_solved: int | None = None
    hard_solved: int | None = None
    total_submissions: int | None = None
    acceptance_rate: str | None = None
    ranking: str | None = None
    contest_attended: int | None = None
    additional_data: dict[str, Any] = Field(default_factory=dict)
    data_status: str = "fresh"
    status_reason: str | None = None
    last_updated: dt.datetime | None = None


class SubmissionStatItem(CamelModel):
    date: dt.date
    count: int


class LanguageStatItem(CamelModel):
    language: str
    count: int
    percentage: str


class BadgeItem(CamelModel):
    name: str
    description: str
    icon: str


class ContestItem(CamelModel):
    contest_name: str
    ranking: str
    score: int
    date: dt.date


class PlatformData(CamelModel):
    """Everything stored for one connected platform, as the dashboard renders it."""

    platform_type: str
    username: str
    profile: ProfileStats
    submission_stats: list[SubmissionStatItem] = Field(default_factory=list)
    language_stats: list[LanguageStatItem] = Field(default_factory=list)
    badges: list[BadgeItem] = Field(default_factory=list)
    contest_history: list[ContestItem] = Field(default_factory=list)


class PlatformConnection(CamelModel):
    id: int
    platform_type: str
    username: str
    is_active: bool


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class _UsernameMixin(CamelModel):
    @field_validator("username", "leetcode_username", check_fields=False)
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Username is required"
            raise ValueError(msg)
        return v


class AddPlatformRequest(_UsernameMixin):
    platform_type: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1, max_length=255)


class DeletePlatformRequest(CamelModel):
    platform_type: str = Field(..., min_length=1)


class VerifyUsernameRequest(_UsernameMixin):
    username: str = Field(..., min_length=1, max_length=255)


class LeetCodeUsernameRequest(_UsernameMixin):
    leetcode_username: str = Field(..., min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class AddPlatformResponse(CamelModel):
    message: str
    platform: PlatformConnection


class MessageResponse(CamelModel):
    message: str


class VerifyUsernameResponse(CamelModel):
    exists: bool


class PlatformDataResponse(CamelModel):
    platform_data: PlatformData


class LeetCodeUsernameResponse(CamelModel):
    success: bool
    message: str
    profile: PlatformData | None = None


class RefreshOutcome(CamelModel):
    platform_type: str
    success: bool
    error: str | None = None
    data_status: str | None = None


class RefreshAllResponse(CamelModel):
    results: list[RefreshOutcome]
