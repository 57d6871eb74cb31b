"""GeeksforGeeks adapter tests against a mocked transport."""

import httpx

from codetrack.platforms.base import DataStatus, ProfileSnapshot
from codetrack.platforms.geeksforgeeks import GeeksforGeeksAdapter

PROFILE = {
    "userName": "geek",
    "problemsSolved": "150",
    "codingScore": "420",
    "monthlyCodingScore": "12",
    "institution": "Example Institute",
    "instituteRank": "7",
}


def _adapter(handler) -> GeeksforGeeksAdapter:
    return GeeksforGeeksAdapter(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _profile_handler(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("username") == "geek":
        return httpx.Response(200, json=PROFILE)
    return httpx.Response(200, json={"status": "false", "message": "User not found"})


class TestProfile:
    async def test_profile(self):
        result = await _adapter(_profile_handler).fetch_profile("geek")
        assert result.status is DataStatus.FRESH
        profile = result.profile
        assert profile.total_solved == 150
        assert profile.total_submissions == 300
        assert profile.ranking is None
        assert profile.additional_data == {
            "instituteName": "Example Institute",
            "instituteRank": "7",
            "overallCodingScore": 420,
            "monthlyCodingScore": 12,
        }

    async def test_unknown_user(self):
        result = await _adapter(_profile_handler).fetch_profile("nobody")
        assert result.status is DataStatus.UNAVAILABLE
        assert await _adapter(_profile_handler).check_username("nobody") is False

    async def test_check_username(self):
        assert await _adapter(_profile_handler).check_username("geek") is True

    async def test_server_error(self):
        result = await _adapter(lambda request: httpx.Response(500)).fetch_profile("geek")
        assert result.status is DataStatus.UNAVAILABLE
        assert result.reason == "GeeksforGeeks is unreachable"

    async def test_submissions_are_zero_filled(self):
        days = await GeeksforGeeksAdapter().fetch_submissions(ProfileSnapshot(username="geek"))
        assert len(days) == 31
        assert all(day.count == 0 for day in days)

    async def test_no_languages_or_contests(self):
        adapter = GeeksforGeeksAdapter()
        assert await adapter.fetch_languages(ProfileSnapshot(username="geek")) == []
        assert await adapter.fetch_contests(ProfileSnapshot(username="geek")) == []


class TestBadges:
    async def test_all_badges(self):
        profile = (await _adapter(_profile_handler).fetch_profile("geek")).profile
        names = [b.name for b in GeeksforGeeksAdapter().fetch_badges(profile)]
        assert names == ["Problem Solver", "Coding Expert", "Institute Contributor"]

    def test_exactly_100_is_not_enough(self):
        profile = ProfileSnapshot(username="g", total_solved=100)
        assert [b.name for b in GeeksforGeeksAdapter().fetch_badges(profile)] == ["GeeksforGeeks Coder"]
