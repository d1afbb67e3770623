"""Needs routing endpoint for EchoAid API v1."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from echoaid.models.interaction import Entity
from echoaid.models.routing import RoutingResult
from echoaid.models.session import Location
from echoaid.services.routing import RoutingEngine

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/routing", tags=["routing"])


class RouteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    intent: str | None = None
    entities: list[Entity] = Field(default_factory=list)
    location: Location | None = None
    language: str | None = None


def _get_routing(request: Request) -> RoutingEngine:
    engine = getattr(request.app.state, "routing", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Routing engine not initialised.")
    return engine


@router.post("/route", response_model=RoutingResult)
async def route(body: RouteRequest, request: Request) -> RoutingResult:
    """Match the caller's need to providers, schemes or helplines.

    Always answers 200; a routing failure comes back as
    ``success: false`` with a ``transfer_to_human`` action.
    """
    engine = _get_routing(request)
    return await engine.route(
        body.session_id, body.intent, body.entities, body.location, body.language,
    )
