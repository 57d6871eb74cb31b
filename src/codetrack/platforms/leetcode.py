"""LeetCode adapter: GraphQL first, community REST mirror second, placeholders last."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
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
from codetrack.platforms.stats import (
    calendar_from_counts,
    calendar_from_timestamps,
    format_percentage,
    language_breakdown,
    submission_window,
)

logger = structlog.get_logger()

PROFILE_QUERY = """
query getUserProfile($username: String!) {
  matchedUser(username: $username) {
    username
    submitStats: submitStatsGlobal {
      acSubmissionNum { difficulty count submissions }
      totalSubmissionNum { difficulty count submissions }
    }
    profile { ranking reputation starRating userAvatar }
    submissionCalendar
  }
  allQuestionsCount { difficulty count }
}
"""

LANGUAGE_QUERY = """
query languageStats($username: String!) {
  matchedUser(username: $username) {
    languageProblemCount { languageName problemsSolved }
  }
}
"""

CONTEST_QUERY = """
query userContestRankingInfo($username: String!) {
  userContestRanking(username: $username) {
    attendedContestsCount
    rating
    globalRanking
    totalParticipants
    topPercentage
  }
  userContestRankingHistory(username: $username) {
    attended
    problemsSolved
    totalProblems
    rating
    ranking
    contest { title startTime }
  }
}
"""

# Question totals used when LeetCode cannot be reached.
_PLACEHOLDER_TOTALS = {"totalQuestions": 2200, "easyTotal": 500, "mediumTotal": 1200, "hardTotal": 500}


def _rate_limited_placeholder(username: str) -> ProfileSnapshot:
    return ProfileSnapshot(
        username=username,
        total_solved=120,
        easy_solved=50,
        medium_solved=60,
        hard_solved=10,
        total_submissions=150,
        acceptance_rate="65.2%",
        ranking="10000",
        additional_data=dict(_PLACEHOLDER_TOTALS),
        raw={"source": "placeholder"},
    )


def _unreachable_placeholder(username: str) -> ProfileSnapshot:
    return ProfileSnapshot(
        username=username,
        total_solved=85,
        easy_solved=40,
        medium_solved=35,
        hard_solved=10,
        total_submissions=140,
        acceptance_rate="60.0%",
        ranking="15000",
        additional_data=dict(_PLACEHOLDER_TOTALS),
        raw={"source": "placeholder"},
    )


def _by_difficulty(rows: list[dict[str, Any]] | None, difficulty: str, field: str = "count") -> int:
    """``count`` is distinct problems; ``submissions`` is every submission."""
    for row in rows or []:
        if row.get("difficulty") == difficulty:
            return int(row.get(field) or 0)
    return 0


def _is_rate_limited(exc: Exception) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


class UserNotFoundError(LookupError):
    """The platform reported that the account does not exist."""


class LeetCodeAdapter(PlatformAdapter):
    platform = PlatformType.LEETCODE

    async def _graphql(self, query: str, username: str) -> dict[str, Any]:
        settings = get_settings()
        response = await self._request(
            "POST",
            settings.leetcode_graphql_url,
            json={"query": query, "variables": {"username": username}},
            headers={"Referer": "https://leetcode.com", "Content-Type": "application/json"},
        )
        response.raise_for_status()
        body = response.json()
        return body.get("data") or {}

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def check_username(self, username: str) -> bool:
        try:
            data = await self._graphql(PROFILE_QUERY, username)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                logger.warning("leetcode_rate_limited", username=username, during="check_username")
                return True
            logger.warning("leetcode_check_failed", username=username, status=e.response.status_code)
            return False
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("leetcode_check_failed", username=username, error=str(e))
            return False
        return data.get("matchedUser") is not None

    async def fetch_profile(self, username: str) -> FetchResult:
        try:
            data = await self._graphql(PROFILE_QUERY, username)
            if data.get("matchedUser") is None:
                return FetchResult.unavailable(f"LeetCode user '{username}' not found")
            return FetchResult.fresh(self._parse_graphql_profile(data))
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            if _is_rate_limited(e):
                logger.warning("leetcode_rate_limited", username=username, during="fetch_profile")
                return FetchResult.stale(_rate_limited_placeholder(username), "LeetCode rate limit reached")
            logger.warning("leetcode_graphql_failed", username=username, error=str(e))

        return await self._fetch_profile_from_mirror(username)

    def _parse_graphql_profile(self, data: dict[str, Any]) -> ProfileSnapshot:
        user = data["matchedUser"]
        stats = user.get("submitStats") or {}
        accepted = stats.get("acSubmissionNum")
        attempted = stats.get("totalSubmissionNum")
        questions = data.get("allQuestionsCount")
        profile = user.get("profile") or {}

        total_solved = _by_difficulty(accepted, "All")
        accepted_submissions = _by_difficulty(accepted, "All", "submissions")
        total_submissions = _by_difficulty(attempted, "All", "submissions")
        acceptance = (
            format_percentage(accepted_submissions / total_submissions * 100) if total_submissions else "0.0%"
        )

        raw_calendar = user.get("submissionCalendar")
        counts = json.loads(raw_calendar) if raw_calendar else {}
        ranking = profile.get("ranking")

        return ProfileSnapshot(
            username=user.get("username") or "",
            total_solved=total_solved,
            easy_solved=_by_difficulty(accepted, "Easy"),
            medium_solved=_by_difficulty(accepted, "Medium"),
            hard_solved=_by_difficulty(accepted, "Hard"),
            total_submissions=total_submissions,
            acceptance_rate=acceptance,
            ranking=str(ranking) if ranking is not None else None,
            additional_data={
                "totalQuestions": _by_difficulty(questions, "All"),
                "easyTotal": _by_difficulty(questions, "Easy"),
                "mediumTotal": _by_difficulty(questions, "Medium"),
                "hardTotal": _by_difficulty(questions, "Hard"),
                "reputation": profile.get("reputation"),
                "avatar": profile.get("userAvatar"),
            },
            calendar={day: n for day, n in calendar_from_counts(counts).items() if n > 0},
            raw={"source": "graphql"},
        )

    async def _fetch_profile_from_mirror(self, username: str) -> FetchResult:
        base = get_settings().leetcode_mirror_url.rstrip("/")
        try:
            user_data = await self._get_json(f"{base}/user/{username}")
            if not user_data or user_data.get("errors"):
                raise UserNotFoundError(username)
            stats = await self._get_json(f"{base}/problems/all/{username}")
        except UserNotFoundError:
            return FetchResult.unavailable(f"LeetCode user '{username}' not found")
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                return FetchResult.unavailable(f"LeetCode user '{username}' not found")
            if status == 429:
                logger.warning("leetcode_rate_limited", username=username, during="mirror")
                return FetchResult.stale(_rate_limited_placeholder(username), "LeetCode rate limit reached")
            logger.warning("leetcode_mirror_failed", username=username, status=status)
            return FetchResult.stale(_unreachable_placeholder(username), "LeetCode is unreachable")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("leetcode_mirror_failed", username=username, error=str(e))
            return FetchResult.stale(_unreachable_placeholder(username), "LeetCode is unreachable")

        ranking = user_data.get("ranking")
        return FetchResult.fresh(
            ProfileSnapshot(
                username=username,
                total_solved=int(stats.get("totalSolved") or 0),
                easy_solved=int(stats.get("easySolved") or 0),
                medium_solved=int(stats.get("mediumSolved") or 0),
                hard_solved=int(stats.get("hardSolved") or 0),
                total_submissions=int(user_data.get("totalSubmissions") or 0),
                acceptance_rate=user_data.get("acceptanceRate") or "0.0%",
                ranking=str(ranking) if ranking is not None else "N/A",
                additional_data={
                    "totalQuestions": int(stats.get("totalQuestions") or 0),
                    "easyTotal": int(stats.get("totalEasy") or 0),
                    "mediumTotal": int(stats.get("totalMedium") or 0),
                    "hardTotal": int(stats.get("totalHard") or 0),
                },
                calendar=await self._mirror_calendar(base, username),
                raw={"source": "mirror"},
            )
        )

    async def _mirror_calendar(self, base: str, username: str) -> dict[date, int]:
        """Recent accepted submissions bucketed by day; empty when the mirror has none."""
        try:
            body = await self._get_json(f"{base}/recent-submissions/{username}")
            submissions = (body.get("data") or {}).get("recentSubmissionList") or []
            return calendar_from_timestamps(int(s["timestamp"]) for s in submissions)
        except (httpx.HTTPError, ValueError, KeyError, AttributeError, TypeError) as e:
            logger.info("leetcode_recent_submissions_unavailable", username=username, error=str(e))
            return {}

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------

    async def fetch_submissions(self, profile: ProfileSnapshot) -> list[SubmissionDay]:
        return submission_window(profile.calendar)

    async def fetch_languages(self, profile: ProfileSnapshot) -> list[LanguageCount]:
        if profile.raw.get("source") == "placeholder":
            return []
        try:
            data = await self._graphql(LANGUAGE_QUERY, profile.username)
            rows = (data.get("matchedUser") or {}).get("languageProblemCount") or []
            return language_breakdown({row["languageName"]: row["problemsSolved"] for row in rows})
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("leetcode_languages_failed", username=profile.username, error=str(e))
            return []

    async def fetch_contests(self, profile: ProfileSnapshot) -> list[ContestEntry]:
        if profile.raw.get("source") == "placeholder":
            return []
        try:
            data = await self._graphql(CONTEST_QUERY, profile.username)
            history = data.get("userContestRankingHistory") or []
            participants = (data.get("userContestRanking") or {}).get("totalParticipants") or "?"
            contests = [
                ContestEntry(
                    contest_name=entry["contest"]["title"],
                    ranking=f"{entry['ranking']} / {participants}",
                    score=int(entry.get("problemsSolved") or 0),
                    date=datetime.fromtimestamp(entry["contest"]["startTime"], tz=timezone.utc).date(),
                )
                for entry in history
                if entry.get("attended")
            ]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("leetcode_contests_failed", username=profile.username, error=str(e))
            return []
        contests.sort(key=lambda c: c.date, reverse=True)
        return contests

    def fetch_badges(self, profile: ProfileSnapshot) -> list[BadgeInfo]:
        solved = profile.total_solved or 0
        easy = profile.easy_solved or 0
        medium = profile.medium_solved or 0
        hard = profile.hard_solved or 0
        badges: list[BadgeInfo] = []

        if solved >= 100:
            badges.append(BadgeInfo("Century Club", "Solved 100+ problems", "trophy"))
        if hard >= 20:
            badges.append(BadgeInfo("Hard Hitter", "Solved 20+ hard problems", "zap"))
        if len(profile.calendar) >= 30:
            badges.append(BadgeInfo("Consistent Coder", "Coded on 30+ different days", "calendar"))
        if easy > 0 and medium > 0 and hard > 0:
            badges.append(BadgeInfo("Balanced Solver", "Solved problems of all difficulties", "scale"))
        if _acceptance_value(profile.acceptance_rate) > 60:
            badges.append(BadgeInfo("Efficient Coder", "Maintained over 60% acceptance rate", "check-circle"))

        if not badges:
            badges.append(BadgeInfo("LeetCode Beginner", "Started the LeetCode journey", "code"))
        return badges


def _acceptance_value(rate: str | None) -> float:
    try:
        return float((rate or "0").rstrip("%"))
    except ValueError:
        return 0.0
