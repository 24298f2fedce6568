"""FastAPI application factory for the read-only JSON API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from autotrader.api.routes import actions, api


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Route handlers read ``app.state.scheduler``; main.py sets it in the
    lifespan, tests set it directly.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Configured FastAPI application with API and action routes.
    """
    app = FastAPI(
        title="Autotrader",
        lifespan=lifespan,
    )
    app.state.scheduler = None

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/actions")

    return app
