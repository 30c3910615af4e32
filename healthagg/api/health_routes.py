"""API routes exposing the composite health.

Endpoints:
  GET  /health         — combined status of every probe (200 when UP, 503 otherwise)
  GET  /health/{name}  — the nested result of a single probe
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from healthagg.health.checker import CompositeChecker
from healthagg.health.status import Health

logger = logging.getLogger(__name__)

health_router = APIRouter()


def _respond(health: Health) -> JSONResponse:
    return JSONResponse(
        content=health.to_dict(),
        status_code=200 if health.is_up() else 503,
    )


@health_router.get("/health")
def get_health(request: Request) -> JSONResponse:
    """Combined health of every registered probe."""
    checker: CompositeChecker = request.app.state.checker
    return _respond(checker.check())


@health_router.get("/health/{name}")
def get_probe_health(name: str, request: Request) -> JSONResponse:
    """Health of one probe, taken from the combined result."""
    checker: CompositeChecker = request.app.state.checker
    result = checker.check().get_info(name)
    if not isinstance(result, Health):
        raise HTTPException(status_code=404, detail=f"Probe not found: {name}")
    return _respond(result)
