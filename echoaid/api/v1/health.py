"""Health check endpoints for EchoAid API v1.

Provides liveness and readiness probes for Cloud Run deployments.  The
readiness check verifies the document store answers and reports which
optional GCP backends are configured.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    version: str
    uptime_seconds: float


class ReadinessResponse(BaseModel):
    """Readiness check response with individual service statuses."""

    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe.

    Returns 200 if the application process is running and able to
    handle requests.  Does *not* check downstream dependencies.
    """
    start_time: float = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(time.time() - start_time, 2),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ORJSONResponse:
    """Readiness probe.

    Answers 503 until the store is reachable and the call orchestrator
    is up, so the load balancer only routes calls to ready instances.
    """
    checks: dict[str, str] = {}
    all_ok = True

    # -- Store ---------------------------------------------------------------
    store = getattr(request.app.state, "store", None)
    if store is None:
        checks["store"] = "not_initialised"
        all_ok = False
    else:
        try:
            checks["store"] = "ok" if await store.ping() else "unreachable"
        except Exception as exc:
            checks["store"] = f"error: {exc!s}"
        all_ok = all_ok and checks["store"] == "ok"

    # -- Orchestrator ----------------------------------------------------------
    if getattr(request.app.state, "orchestrator", None) is not None:
        checks["orchestrator"] = "ok"
    else:
        checks["orchestrator"] = "not_initialised"
        all_ok = False

    # -- Optional GCP backends -------------------------------------------------
    for name in ("stt", "tts", "intent_classifier"):
        checks[name] = "ok" if getattr(request.app.state, name, None) is not None else "not_configured"

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is not None:
        checks["pending_callbacks"] = str(scheduler.pending)

    readiness = ReadinessResponse(status="ready" if all_ok else "not_ready", checks=checks)
    if not all_ok:
        logger.warning("health.not_ready", checks=checks)
    return ORJSONResponse(status_code=200 if all_ok else 503, content=readiness.model_dump())
