"""FastAPI server exposing the aggregated health."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from healthagg.api.health_routes import health_router
from healthagg.config import settings
from healthagg.registry import ProbeRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the checker from the registry and run the background refresh."""
    registry = ProbeRegistry()
    registry.load()
    app.state.registry = registry

    checker = registry.build_checker()
    app.state.checker = checker

    if settings.cache_enabled:
        try:
            checker.start(registry.interval_seconds)
        except Exception:
            logger.exception("Health refresh failed to start, serving live checks")

    yield

    # Shutdown
    checker.stop()


def create_app() -> FastAPI:
    app = FastAPI(
        title="healthagg",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    return app


app = create_app()
