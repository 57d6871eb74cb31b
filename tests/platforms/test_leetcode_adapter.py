"""LeetCode adapter tests against a mocked transport."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from codetrack.platforms.base import DataStatus, ProfileSnapshot
from codetrack.platforms.leetcode import CONTEST_QUERY, LANGUAGE_QUERY, PROFILE_QUERY, LeetCodeAdapter
from codetrack.platforms.stats import utc_today

MIRROR = "https://alfa-leetcode-api.onrender.com"


def _today_ts() -> int:
    return int(datetime.now(timezone.utc).replace(hour=12, minute=0, second=0, microsecond=0).timestamp())


def _profile_body(username: str = "coder") -> dict:
    calendar = {str(_today_ts()): 3, str(_today_ts() - 2 * 86400): 1}
    return {
        "data": {
            "matchedUser": {
                "username": username,
                "submitStats": {
                    "acSubmissionNum": [
                        {"difficulty": "All", "count": 150, "submissions": 200},
                        {"difficulty": "Easy", "count": 70, "submissions": 90},
                        {"difficulty": "Medium", "count": 55, "submissions": 80},
                        {"difficulty": "Hard", "count": 25, "submissions": 30},
                    ],
                    "totalSubmissionNum": [
                        {"difficulty": "All", "count": 200, "submissions": 300},
                    ],
                },
                "profile": {"ranking": 12345, "reputation": 7, "starRating": 3, "userAvatar": "a.png"},
                "submissionCalendar": json.dumps(calendar),
            },
            "allQuestionsCount": [
                {"difficulty": "All", "count": 3000},
                {"difficulty": "Easy", "count": 800},
                {"difficulty": "Medium", "count": 1600},
                {"difficulty": "Hard", "count": 600},
            ],
        }
    }


def _adapter(handler) -> LeetCodeAdapter:
    return LeetCodeAdapter(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _query(request: httpx.Request) -> str:
    return json.loads(request.content)["query"]


class TestProfile:
    async def test_graphql_profile(self):
        adapter = _adapter(lambda request: httpx.Response(200, json=_profile_body()))
        result = await adapter.fetch_profile("coder")

        assert result.status is DataStatus.FRESH
        profile = result.profile
        assert profile.total_solved == 150
        assert (profile.easy_solved, profile.medium_solved, profile.hard_solved) == (70, 55, 25)
        assert profile.total_submissions == 300  # submissions, not distinct problems
        assert profile.acceptance_rate == "66.7%"
        assert profile.ranking == "12345"
        assert profile.additional_data["totalQuestions"] == 3000
        assert profile.calendar[utc_today()] == 3

    async def test_unknown_user_is_unavailable(self):
        adapter = _adapter(lambda request: httpx.Response(200, json={"data": {"matchedUser": None}}))
        result = await adapter.fetch_profile("ghost")
        assert result.status is DataStatus.UNAVAILABLE
        assert result.profile is None
        assert "not found" in result.reason

    async def test_rate_limit_gives_stale_placeholder(self):
        adapter = _adapter(lambda request: httpx.Response(429))
        result = await adapter.fetch_profile("coder")
        assert result.status is DataStatus.STALE
        assert result.profile.total_solved == 120
        assert result.profile.acceptance_rate == "65.2%"
        assert result.reason == "LeetCode rate limit reached"

    async def test_falls_back_to_mirror(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "leetcode.com":
                return httpx.Response(500)
            if request.url.path == "/user/coder":
                return httpx.Response(200, json={"ranking": 999, "totalSubmissions": 40, "acceptanceRate": "55.5%"})
            if request.url.path == "/problems/all/coder":
                return httpx.Response(
                    200,
                    json={
                        "totalSolved": 20,
                        "easySolved": 10,
                        "mediumSolved": 8,
                        "hardSolved": 2,
                        "totalQuestions": 3000,
                    },
                )
            if request.url.path == "/recent-submissions/coder":
                return httpx.Response(
                    200, json={"data": {"recentSubmissionList": [{"timestamp": str(_today_ts())}]}}
                )
            return httpx.Response(404)

        result = await _adapter(handler).fetch_profile("coder")
        assert result.status is DataStatus.FRESH
        assert result.profile.total_solved == 20
        assert result.profile.ranking == "999"
        assert result.profile.acceptance_rate == "55.5%"
        assert result.profile.calendar == {utc_today(): 1}

    async def test_mirror_404_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "leetcode.com":
                return httpx.Response(503)
            return httpx.Response(404)

        result = await _adapter(handler).fetch_profile("ghost")
        assert result.status is DataStatus.UNAVAILABLE

    async def test_everything_down_gives_stale_placeholder(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        result = await _adapter(handler).fetch_profile("coder")
        assert result.status is DataStatus.STALE
        assert result.profile.total_solved == 85
        assert result.reason == "LeetCode is unreachable"


class TestCheckUsername:
    async def test_existing_user(self):
        adapter = _adapter(lambda request: httpx.Response(200, json=_profile_body()))
        assert await adapter.check_username("coder") is True

    async def test_missing_user(self):
        adapter = _adapter(lambda request: httpx.Response(200, json={"data": {"matchedUser": None}}))
        assert await adapter.check_username("ghost") is False

    async def test_rate_limited_is_assumed_valid(self):
        adapter = _adapter(lambda request: httpx.Response(429))
        assert await adapter.check_username("coder") is True

    async def test_server_error_is_invalid(self):
        adapter = _adapter(lambda request: httpx.Response(500))
        assert await adapter.check_username("coder") is False


class TestFacets:
    async def test_languages(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert _query(request) == LANGUAGE_QUERY
            rows = [
                {"languageName": "Python3", "problemsSolved": 90},
                {"languageName": "Java", "problemsSolved": 10},
                {"languageName": "Go", "problemsSolved": 0},
            ]
            return httpx.Response(200, json={"data": {"matchedUser": {"languageProblemCount": rows}}})

        languages = await _adapter(handler).fetch_languages(ProfileSnapshot(username="coder"))
        assert [(lang.language, lang.percentage) for lang in languages] == [("Python3", "90.0%"), ("Java", "10.0%")]

    async def test_contests_only_attended_newest_first(self):
        now = datetime.now(timezone.utc)

        def contest(title: str, days_ago: int, attended: bool, solved: int, ranking: int) -> dict:
            start = int((now - timedelta(days=days_ago)).timestamp())
            return {
                "attended": attended,
                "problemsSolved": solved,
                "ranking": ranking,
                "contest": {"title": title, "startTime": start},
            }

        history = [
            contest("Weekly 1", 14, True, 2, 800),
            contest("Weekly 2", 7, False, 0, 0),
            contest("Weekly 3", 0, True, 4, 120),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            assert _query(request) == CONTEST_QUERY
            body = {"userContestRanking": {"totalParticipants": 30000}, "userContestRankingHistory": history}
            return httpx.Response(200, json={"data": body})

        contests = await _adapter(handler).fetch_contests(ProfileSnapshot(username="coder"))
        assert [c.contest_name for c in contests] == ["Weekly 3", "Weekly 1"]
        assert contests[0].ranking == "120 / 30000"
        assert contests[0].score == 4

    async def test_placeholder_profiles_skip_facet_calls(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        adapter = _adapter(handler)
        placeholder = ProfileSnapshot(username="coder", raw={"source": "placeholder"})
        assert await adapter.fetch_languages(placeholder) == []
        assert await adapter.fetch_contests(placeholder) == []

    async def test_submissions_window(self):
        adapter = LeetCodeAdapter()
        days = await adapter.fetch_submissions(ProfileSnapshot(username="coder", calendar={utc_today(): 5}))
        assert len(days) == 31
        assert days[-1].count == 5


class TestBadges:
    def test_rules(self):
        profile = ProfileSnapshot(
            username="coder",
            total_solved=150,
            easy_solved=70,
            medium_solved=55,
            hard_solved=25,
            acceptance_rate="75.0%",
        )
        names = [b.name for b in LeetCodeAdapter().fetch_badges(profile)]
        assert names == ["Century Club", "Hard Hitter", "Balanced Solver", "Efficient Coder"]

    def test_consistent_coder_needs_30_active_days(self):
        today = utc_today()
        calendar = {today - timedelta(days=i): 1 for i in range(30)}
        names = [b.name for b in LeetCodeAdapter().fetch_badges(ProfileSnapshot(username="c", calendar=calendar))]
        assert "Consistent Coder" in names

    def test_beginner_fallback(self):
        badges = LeetCodeAdapter().fetch_badges(ProfileSnapshot(username="new", total_solved=0))
        assert [b.name for b in badges] == ["LeetCode Beginner"]

    def test_profile_query_requests_calendar(self):
        assert "submissionCalendar" in PROFILE_QUERY


def _badge_names(**fields) -> list[str]:
    return [b.name for b in LeetCodeAdapter().fetch_badges(ProfileSnapshot(username="coder", **fields))]


class TestBadgeThresholds:
    @pytest.mark.parametrize(("solved", "awarded"), [(99, False), (100, True)])
    def test_century_club(self, solved, awarded):
        assert ("Century Club" in _badge_names(total_solved=solved)) is awarded

    @pytest.mark.parametrize(("hard", "awarded"), [(19, False), (20, True)])
    def test_hard_hitter(self, hard, awarded):
        assert ("Hard Hitter" in _badge_names(hard_solved=hard)) is awarded

    @pytest.mark.parametrize(("days", "awarded"), [(29, False), (30, True)])
    def test_consistent_coder(self, days, awarded):
        today = utc_today()
        calendar = {today - timedelta(days=i): 1 for i in range(days)}
        assert ("Consistent Coder" in _badge_names(calendar=calendar)) is awarded

    @pytest.mark.parametrize(("rate", "awarded"), [("60.0%", False), ("60.1%", True)])
    def test_efficient_coder(self, rate, awarded):
        assert ("Efficient Coder" in _badge_names(acceptance_rate=rate)) is awarded

    @pytest.mark.parametrize(
        ("easy", "medium", "hard", "awarded"),
        [(1, 1, 0, False), (1, 0, 1, False), (0, 1, 1, False), (1, 1, 1, True)],
    )
    def test_balanced_solver(self, easy, medium, hard, awarded):
        names = _badge_names(easy_solved=easy, medium_solved=medium, hard_solved=hard)
        assert ("Balanced Solver" in names) is awarded
