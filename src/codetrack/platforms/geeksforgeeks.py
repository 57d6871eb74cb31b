"""GeeksforGeeks adapter backed by the community profile API."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from codetrack.config import get_settings
from codetrack.platforms.base import (
    BadgeInfo,
    FetchResult,
    PlatformAdapter,
    PlatformType,
    ProfileSnapshot,
    SubmissionDay,
)
from codetrack.platforms.stats import submission_window

logger = structlog.get_logger()


def _as_int(value: Any) -> int:  # noqa: ANN401
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class GeeksforGeeksAdapter(PlatformAdapter):
    platform = PlatformType.GEEKSFORGEEKS

    async def _profile_payload(self, username: str) -> dict[str, Any] | None:
        """Raw profile body, or None when the API says the user does not exist."""
        base = get_settings().gfg_api_url.rstrip("/")
        data = await self._get_json(f"{base}/profile", params={"username": username})
        if not data or not isinstance(data, dict) or str(data.get("status")).lower() == "false":
            return None
        return data

    async def check_username(self, username: str) -> bool:
        try:
            return await self._profile_payload(username) is not None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("gfg_check_failed", username=username, error=str(e))
            return False

    async def fetch_profile(self, username: str) -> FetchResult:
        try:
            data = await self._profile_payload(username)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("gfg_profile_failed", username=username, error=str(e))
            return FetchResult.unavailable("GeeksforGeeks is unreachable")
        if data is None:
            return FetchResult.unavailable(f"GeeksforGeeks user '{username}' not found")

        solved = _as_int(data.get("problemsSolved"))
        return FetchResult.fresh(
            ProfileSnapshot(
                username=username,
                total_solved=solved,
                # The API exposes no submission counts; two attempts per solve is the estimate.
                total_submissions=solved * 2,
                additional_data={
                    "instituteName": data.get("institution") or "",
                    "instituteRank": data.get("instituteRank") or "",
                    "overallCodingScore": _as_int(data.get("codingScore")),
                    "monthlyCodingScore": _as_int(data.get("monthlyCodingScore")),
                },
            )
        )

    async def fetch_submissions(self, profile: ProfileSnapshot) -> list[SubmissionDay]:
        return submission_window({})

    def fetch_badges(self, profile: ProfileSnapshot) -> list[BadgeInfo]:
        extra = profile.additional_data
        badges: list[BadgeInfo] = []
        if (profile.total_solved or 0) > 100:
            badges.append(BadgeInfo("Problem Solver", "Solved 100+ problems on GeeksforGeeks", "code"))
        if _as_int(extra.get("overallCodingScore")) > 300:
            badges.append(BadgeInfo("Coding Expert", "Achieved 300+ coding score on GeeksforGeeks", "award"))
        if extra.get("instituteRank") and extra.get("instituteName"):
            badges.append(BadgeInfo("Institute Contributor", f"Ranked in {extra['instituteName']}", "school"))
        if not badges:
            badges.append(BadgeInfo("GeeksforGeeks Coder", "Active coder on GeeksforGeeks", "code"))
        return badges
