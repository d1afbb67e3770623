"""Telephony webhooks for EchoAid API v1.

The carrier (or IVR flow) calls these endpoints as a call progresses:
on pickup, when the caller asks for a human, when a ring goes
unanswered, and when a callback has to be booked.  Every operation
answers 200 with a structured result; failures carry a localized
message the IVR can read out.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from echoaid.models.calls import (
    AvailabilityResult,
    CallbackResult,
    IncomingCallResult,
    MissedCallResult,
    TransferResult,
)
from echoaid.services.call_orchestrator import CallOrchestrator

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/calls", tags=["calls"])


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class IncomingCallRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_number: str = Field(..., alias="fromNumber", min_length=1)
    call_sid: str = Field(..., alias="callSid", min_length=1)
    language: str | None = None


class TransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    provider_id: str = Field(..., alias="providerId")
    transfer_reason: str = Field(..., alias="transferReason")
    urgency_level: str | None = Field(default=None, alias="urgencyLevel")


class MissedCallRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CallbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    provider_id: str | None = Field(default=None, alias="providerId")
    urgency_level: str | None = Field(default=None, alias="urgencyLevel")
    preferred_time: str | None = Field(default=None, alias="preferredTime")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> CallOrchestrator:
    """Retrieve the call orchestrator from app state, or raise 503."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Call orchestrator not initialised.")
    return orchestrator


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/incoming", response_model=IncomingCallResult)
async def incoming_call(body: IncomingCallRequest, request: Request) -> IncomingCallResult:
    """Start or resume the caller's session and return the greeting."""
    orchestrator = _get_orchestrator(request)
    return await orchestrator.handle_incoming_call(body.from_number, body.call_sid, body.language)


@router.post("/transfer", response_model=TransferResult)
async def transfer_call(body: TransferRequest, request: Request) -> TransferResult:
    orchestrator = _get_orchestrator(request)
    return await orchestrator.transfer_call(
        body.session_id, body.provider_id, body.transfer_reason, body.urgency_level,
    )


@router.post("/missed", response_model=MissedCallResult)
async def missed_call(body: MissedCallRequest, request: Request) -> MissedCallResult:
    """Register a missed call and queue the ring-back."""
    orchestrator = _get_orchestrator(request)
    return await orchestrator.handle_missed_call(body.phone_number, body.timestamp)


@router.post("/callback", response_model=CallbackResult)
async def schedule_callback(body: CallbackRequest, request: Request) -> CallbackResult:
    orchestrator = _get_orchestrator(request)
    return await orchestrator.schedule_callback(
        body.session_id, body.provider_id, body.urgency_level, body.preferred_time,
    )


@router.get("/providers/{provider_id}/availability", response_model=AvailabilityResult)
async def provider_availability(
    provider_id: str,
    request: Request,
    urgency_level: str | None = Query(default=None, alias="urgencyLevel"),
) -> AvailabilityResult:
    orchestrator = _get_orchestrator(request)
    return await orchestrator.check_provider_availability(provider_id, urgency_level)
