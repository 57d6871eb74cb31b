"""Shared test fixtures.

Each test gets its own SQLite database file and no Redis; platform adapters
are swapped for in-process stubs so nothing leaves the machine.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from codetrack.config import get_settings
from codetrack.database import close_db, get_engine, init_db
from codetrack.db.base import Base
from codetrack.db import models  # noqa: F401
from codetrack.main import create_app
from codetrack.platforms import registry
from codetrack.platforms.base import (
    ContestEntry,
    FetchResult,
    LanguageCount,
    PlatformType,
    ProfileSnapshot,
)
from codetrack.platforms.leetcode import LeetCodeAdapter
from codetrack.platforms.stats import language_breakdown, utc_today
from codetrack.redis_client import close_redis

TEST_PASSWORD = "s3cret-pass"


@pytest.fixture(autouse=True)
def _test_settings(tmp_path, monkeypatch):
    """Point the app at a throwaway SQLite file with Redis disabled."""
    monkeypatch.setenv("CODETRACK_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'codetrack.db'}")
    monkeypatch.setenv("CODETRACK_REDIS_ENABLED", "false")
    monkeypatch.setenv("CODETRACK_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Initialize the engine and create every table."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()
    await close_redis()


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest_asyncio.fixture
async def client(app: FastAPI, database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app; keeps the session cookie between calls."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for test assertions."""
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield session


async def register(client: AsyncClient, username: str = "alice", email: str | None = None) -> dict:
    """Register a user through the API; the client keeps the session cookie."""
    response = await client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": TEST_PASSWORD,
            "fullName": username.title(),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["user"]


@pytest.fixture
def register_user():
    """The `register` helper, for tests that need more than one account."""
    return register


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client logged in as a freshly registered user."""
    await register(client)
    return client


# ---------------------------------------------------------------------------
# Stub adapters
# ---------------------------------------------------------------------------


class StubLeetCodeAdapter(LeetCodeAdapter):
    """LeetCode adapter with canned data; badge rules are the real ones."""

    def __init__(self) -> None:
        super().__init__()
        self.known_usernames = {"coder", "other_coder"}
        self.total_solved = 120
        self.languages: dict[str, int] = {"Python3": 80, "C++": 40}
        self.contests: list[ContestEntry] = [
            ContestEntry("Weekly Contest 400", "1200 / 25000", 3, utc_today() - timedelta(days=7)),
        ]
        self.unreachable = False
        self.fetch_count = 0

    async def check_username(self, username: str) -> bool:
        return username in self.known_usernames

    async def fetch_profile(self, username: str) -> FetchResult:
        self.fetch_count += 1
        if self.unreachable:
            return FetchResult.unavailable("LeetCode is unreachable")
        if username not in self.known_usernames:
            return FetchResult.unavailable(f"LeetCode user '{username}' not found")
        today = utc_today()
        return FetchResult.fresh(
            ProfileSnapshot(
                username=username,
                total_solved=self.total_solved,
                easy_solved=self.total_solved // 2,
                medium_solved=self.total_solved // 3,
                hard_solved=self.total_solved - self.total_solved // 2 - self.total_solved // 3,
                total_submissions=self.total_solved * 2,
                acceptance_rate="50.0%",
                ranking="4321",
                additional_data={"totalQuestions": 3000},
                calendar={today: 4, today - timedelta(days=3): 2, today - timedelta(days=90): 7},
            )
        )

    async def fetch_languages(self, profile: ProfileSnapshot) -> list[LanguageCount]:
        return language_breakdown(self.languages)

    async def fetch_contests(self, profile: ProfileSnapshot) -> list[ContestEntry]:
        return list(self.contests)


@pytest.fixture
def leetcode_stub(monkeypatch) -> StubLeetCodeAdapter:
    """Replace the registered LeetCode adapter with a canned one."""
    stub = StubLeetCodeAdapter()
    monkeypatch.setitem(registry._ADAPTERS, PlatformType.LEETCODE, stub)
    return stub
