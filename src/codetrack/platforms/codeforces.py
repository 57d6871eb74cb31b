"""CodeForces adapter over the official REST API (user.info, user.status, user.rating)."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from codetrack.config import get_settings
from codetrack.platforms.base import (
    BadgeInfo,
    ContestEntry,
    FetchResult,
    LanguageCount,
    PlatformAdapter,
    PlatformType,
    ProfileSnapshot,
    SubmissionDay,
)
from codetrack.platforms.stats import calendar_from_timestamps, language_breakdown, submission_window, utc_day

logger = structlog.get_logger()

_SECONDS_PER_YEAR = 365 * 24 * 60 * 60

# (minimum rating, name, icon), highest first; only the top matching tier is awarded.
_RATING_TIERS = (
    (2400, "Grandmaster", "award"),
    (2100, "Master", "star"),
    (1900, "Candidate Master", "star-half"),
    (1600, "Expert", "thumbs-up"),
)


class CodeForcesAdapter(PlatformAdapter):
    platform = PlatformType.CODEFORCES

    async def _call(self, method: str, **params: Any) -> Any | None:  # noqa: ANN401
        """Call an API method and return ``result``, or None when status != "OK".

        CodeForces reports failures (unknown handle included) as HTTP 400 with a
        JSON body, so the body is inspected before the HTTP status.
        """
        base = get_settings().codeforces_api_url.rstrip("/")
        response = await self._request("GET", f"{base}/{method}", params=params)
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise
        if not isinstance(body, dict) or body.get("status") != "OK":
            comment = body.get("comment") if isinstance(body, dict) else None
            logger.info("codeforces_call_failed", method=method, comment=comment)
            return None
        return body.get("result")

    async def _user_info(self, handle: str) -> dict[str, Any] | None:
        result = await self._call("user.info", handles=handle)
        if not result:
            return None
        return result[0]

    async def check_username(self, username: str) -> bool:
        try:
            return await self._user_info(username) is not None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("codeforces_check_failed", handle=username, error=str(e))
            return False

    async def fetch_profile(self, username: str) -> FetchResult:
        settings = get_settings()
        try:
            user = await self._user_info(username)
            if user is None:
                return FetchResult.unavailable(f"CodeForces user '{username}' not found")
            submissions = await self._call("user.status", handle=username, count=settings.codeforces_submission_count)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("codeforces_profile_failed", handle=username, error=str(e))
            return FetchResult.unavailable("CodeForces is unreachable")
        # Without the submissions list every count would read as zero.
        if submissions is None:
            return FetchResult.unavailable("CodeForces submissions unavailable")

        solved = {
            f"{sub['problem'].get('contestId')}_{sub['problem'].get('index')}"
            for sub in submissions
            if sub.get("verdict") == "OK" and sub.get("problem")
        }
        return FetchResult.fresh(
            ProfileSnapshot(
                username=user.get("handle") or username,
                total_solved=len(solved),
                total_submissions=len(submissions),
                ranking=user.get("rank"),
                additional_data={
                    "rating": user.get("rating"),
                    "maxRating": user.get("maxRating"),
                    "rank": user.get("rank"),
                    "maxRank": user.get("maxRank"),
                    "contribution": user.get("contribution"),
                    "avatar": user.get("titlePhoto"),
                    "registrationTimeSeconds": user.get("registrationTimeSeconds"),
                },
                calendar=calendar_from_timestamps(
                    sub["creationTimeSeconds"] for sub in submissions if "creationTimeSeconds" in sub
                ),
                raw={"submissions": submissions},
            )
        )

    async def fetch_submissions(self, profile: ProfileSnapshot) -> list[SubmissionDay]:
        return submission_window(profile.calendar)

    async def fetch_languages(self, profile: ProfileSnapshot) -> list[LanguageCount]:
        submissions = profile.raw.get("submissions") or []
        return language_breakdown(
            Counter(sub["programmingLanguage"] for sub in submissions if sub.get("programmingLanguage"))
        )

    async def fetch_contests(self, profile: ProfileSnapshot) -> list[ContestEntry]:
        limit = get_settings().codeforces_contest_limit
        try:
            history = await self._call("user.rating", handle=profile.username) or []
            return [
                ContestEntry(
                    contest_name=entry["contestName"],
                    ranking=str(entry["rank"]),
                    score=int(entry["newRating"]) - int(entry["oldRating"]),
                    date=utc_day(entry["ratingUpdateTimeSeconds"]),
                )
                for entry in reversed(history)
            ][:limit]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("codeforces_contests_failed", handle=profile.username, error=str(e))
            return []

    def fetch_badges(self, profile: ProfileSnapshot) -> list[BadgeInfo]:
        extra = profile.additional_data
        badges: list[BadgeInfo] = []

        rating = extra.get("rating") or 0
        for minimum, name, icon in _RATING_TIERS:
            if rating >= minimum:
                badges.append(BadgeInfo(name, f"Achieved {name} rating on CodeForces", icon))
                break

        if (extra.get("contribution") or 0) > 0:
            badges.append(BadgeInfo("Contributor", "Made positive contributions to CodeForces community", "users"))

        registered = extra.get("registrationTimeSeconds")
        if registered:
            now = datetime.now(timezone.utc).timestamp()
            years = int((now - registered) // _SECONDS_PER_YEAR)
            if years >= 3:
                badges.append(BadgeInfo("Veteran", f"Active on CodeForces for {years}+ years", "clock"))

        if not badges:
            badges.append(BadgeInfo("CodeForces Participant", "Active participant on CodeForces", "code"))
        return badges
