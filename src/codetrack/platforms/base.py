"""Common shapes and the adapter interface every platform implements.

An adapter translates one external platform's API into ``ProfileSnapshot``
plus four list-shaped facets (submissions, languages, badges, contests).
Adapters never persist anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

import httpx

from codetrack.config import get_settings


class PlatformType(str, Enum):
    """Closed set of supported platforms; the value is what gets stored."""

    LEETCODE = "leetcode"
    GEEKSFORGEEKS = "geeksforgeeks"
    CODEFORCES = "codeforces"

    @classmethod
    def parse(cls, value: str) -> PlatformType:
        """Parse a platform name, raising ValueError for unknown ones."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            msg = f"Invalid platform type: {value}"
            raise ValueError(msg) from None


class DataStatus(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    UNAVAILABLE = "unavailable"


@dataclass
class SubmissionDay:
    date: date
    count: int


@dataclass
class LanguageCount:
    language: str
    count: int
    percentage: str


@dataclass
class BadgeInfo:
    name: str
    description: str
    icon: str


@dataclass
class ContestEntry:
    contest_name: str
    ranking: str
    score: int
    date: date


@dataclass
class ProfileSnapshot:
    """Aggregate stats for one external account.

    ``calendar`` maps a UTC day to its submission count where the platform
    supplies activity data. ``raw`` keeps platform payloads that later facet
    derivations reuse (e.g. the CodeForces submissions list).
    """

    username: str
    total_solved: int | None = None
    easy_solved: int | None = None
    medium_solved: int | None = None
    hard_solved: int | None = None
    total_submissions: int | None = None
    acceptance_rate: str | None = None
    ranking: str | None = None
    additional_data: dict[str, Any] = field(default_factory=dict)
    calendar: dict[date, int] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class FetchResult:
    """Outcome of a profile fetch.

    ``FRESH`` carries real data, ``STALE`` carries placeholder data plus the
    reason it was substituted, ``UNAVAILABLE`` carries only a reason.
    """

    status: DataStatus
    profile: ProfileSnapshot | None = None
    reason: str | None = None

    @classmethod
    def fresh(cls, profile: ProfileSnapshot) -> FetchResult:
        return cls(DataStatus.FRESH, profile)

    @classmethod
    def stale(cls, profile: ProfileSnapshot, reason: str) -> FetchResult:
        return cls(DataStatus.STALE, profile, reason)

    @classmethod
    def unavailable(cls, reason: str) -> FetchResult:
        return cls(DataStatus.UNAVAILABLE, None, reason)


class PlatformAdapter(ABC):
    """Abstract base class for external platform adapters."""

    platform: PlatformType

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def _get_json(self, url: str, **kwargs: Any) -> Any:  # noqa: ANN401
        """GET ``url`` and decode JSON, raising ``httpx.HTTPStatusError`` on 4xx/5xx."""
        response = await self._request("GET", url, **kwargs)
        response.raise_for_status()
        return response.json()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request on the injected client, or on a short-lived one."""
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        settings = get_settings()
        async with httpx.AsyncClient(
            timeout=settings.http_timeout_seconds,
            headers={"User-Agent": "CodeTrack/1.0", "Accept": "application/json"},
        ) as client:
            return await client.request(method, url, **kwargs)

    @abstractmethod
    async def check_username(self, username: str) -> bool:
        """Return True if ``username`` exists on the platform."""
        ...

    @abstractmethod
    async def fetch_profile(self, username: str) -> FetchResult:
        """Fetch and normalize the profile. Never raises for upstream failures."""
        ...

    @abstractmethod
    async def fetch_submissions(self, profile: ProfileSnapshot) -> list[SubmissionDay]:
        """Exactly 31 daily entries, oldest first, ending today (UTC)."""
        ...

    async def fetch_languages(self, profile: ProfileSnapshot) -> list[LanguageCount]:
        return []

    @abstractmethod
    def fetch_badges(self, profile: ProfileSnapshot) -> list[BadgeInfo]:
        """Rule-based badges; never empty."""
        ...

    async def fetch_contests(self, profile: ProfileSnapshot) -> list[ContestEntry]:
        return []
