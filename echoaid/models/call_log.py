from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from echoaid.models.enums import CallStatus, CallType


class TransferTarget(BaseModel):
    provider_id: str
    provider_name: str
    contact_person: str | None = None


class CallLog(BaseModel):
    """One telephony event for a session.

    Status changes patch the newest row for the session in place rather
    than appending a new one.
    """

    log_id: str = Field(default_factory=lambda: f"log_{uuid4().hex[:12]}")
    session_id: str
    call_type: CallType
    from_number: str
    to_number: str | None = None
    status: CallStatus
    transferred_to: TransferTarget | None = None
    duration: int | None = None  # seconds
    outcome: str | None = None
    follow_up_required: bool = False
    notes: str | None = None
    call_sid: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
