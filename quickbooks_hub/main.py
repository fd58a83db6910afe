"""
FastAPI application entrypoint for the QuickBooks connection hub.
"""

from __future__ import annotations

from fastapi import FastAPI

from quickbooks_hub.api.routes import router as api_router
from quickbooks_hub.core.config import get_settings
from quickbooks_hub.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="QuickBooks Connection Hub",
        version="0.1.0",
        description="OAuth connection management for many QuickBooks Online companies.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
