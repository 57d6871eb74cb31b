"""CORS for the browser dashboard."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codetrack.config import Settings

# Any localhost port, so dev servers on shifting ports can reach the API.
_LOCALHOST_ORIGINS = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the dashboard frontend to call the API with its session cookie.

    Every route is GET or POST. With credentials enabled the origins must be
    listed explicitly; in debug mode any localhost origin is accepted as well.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=_LOCALHOST_ORIGINS if settings.debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-Response-Time"],
    )
