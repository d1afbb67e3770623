"""Daily analytics endpoints for EchoAid API v1."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request

from echoaid.models.analytics import DailyAnalytics
from echoaid.services.analytics import AnalyticsService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _get_analytics(request: Request) -> AnalyticsService:
    service = getattr(request.app.state, "analytics", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Analytics service not initialised.")
    return service


@router.post("/{day}/rollup", response_model=DailyAnalytics)
async def rollup(day: str, request: Request) -> DailyAnalytics:
    """Recompute and store the metrics for *day* (``YYYY-MM-DD``)."""
    service = _get_analytics(request)
    try:
        return await service.rollup(day)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid date '{day}': expected YYYY-MM-DD.") from exc


@router.get("/{day}", response_model=DailyAnalytics)
async def get_daily(day: str, request: Request) -> DailyAnalytics:
    service = _get_analytics(request)
    analytics = await service.get(day)
    if analytics is None:
        raise HTTPException(status_code=404, detail=f"No analytics for '{day}'.")
    return analytics
