"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from codetrack.auth.router import router as auth_router
from codetrack.auth.service import purge_expired_sessions
from codetrack.config import get_settings
from codetrack.dashboard.router import router as dashboard_router
from codetrack.database import close_db, init_db, with_transaction
from codetrack.health.router import router as health_router
from codetrack.middleware import setup_middleware
from codetrack.platforms.router import router as platforms_router
from codetrack.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_enabled:
        await init_redis(settings.redis_url)

    try:
        purged = await with_transaction(purge_expired_sessions)
        logger.info("expired_sessions_purged", count=purged)
    except SQLAlchemyError:
        logger.warning("session_purge_failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CodeTrack API",
        description="Aggregated LeetCode, GeeksforGeeks and CodeForces statistics",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(platforms_router)

    return app


app = create_app()
