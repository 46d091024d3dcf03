"""
FastAPI application entrypoint for the expense companion backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.errors import register_error_handlers
from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Expense Companion API",
        version="0.1.0",
        description=(
            "Passcode sign-in, account linking and Google/Salesforce relays "
            "for the expense application."
        ),
    )
    register_error_handlers(app)
    app.include_router(api_router, prefix="/api")

    for name, configured in (
        ("Google", settings.google.is_configured),
        ("Salesforce", settings.salesforce.is_configured),
        ("Email delivery", settings.notifications.is_configured),
    ):
        if not configured:
            logger.info("%s is not configured; development fallbacks are active", name)
    return app


app = create_app()

__all__ = ["app", "create_app"]
