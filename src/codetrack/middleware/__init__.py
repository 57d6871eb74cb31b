"""Middleware registration."""

from fastapi import FastAPI

from codetrack.config import Settings
from codetrack.middleware.cors import setup_cors
from codetrack.middleware.error_handler import setup_error_handlers
from codetrack.middleware.logging import setup_logging
from codetrack.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost).
    CORS is added last so its headers land on error responses too.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
