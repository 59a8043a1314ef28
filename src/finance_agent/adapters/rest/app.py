"""
FastAPI application: REST adapter for the finance agent.

Usage:
    python run_api.py

Or directly:
    uvicorn finance_agent.adapters.rest.app:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from finance_agent import __version__
from finance_agent.adapters.rest.dependencies import set_factory
from finance_agent.adapters.rest.routers import threads
from finance_agent.factory import ServiceFactory
from finance_agent.infrastructure.config import Settings
from finance_agent.infrastructure.logging_config import configure_logging


def create_app(factory: Optional[ServiceFactory] = None) -> FastAPI:
    """Build the API. Without *factory*, one is created from the environment."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize ServiceFactory on startup."""
        active = factory
        if active is None:
            config = Settings.from_env()
            configure_logging(config.log_level)
            active = ServiceFactory(config)
        await active.initialize()
        set_factory(active)
        yield
        # aiosqlite connections are per-operation
        set_factory(None)

    app = FastAPI(
        title="Finance Agent",
        version=__version__,
        description="Conversational expense tracking and budgeting agent.",
        lifespan=lifespan,
    )
    app.include_router(threads.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
