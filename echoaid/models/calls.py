"""Results returned by the call orchestrator's public operations."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class IncomingCallResult(BaseModel):
    success: bool = True
    session_id: str | None = None
    welcome_message: str | None = None
    language: str | None = None
    is_returning_user: bool = False
    next_action: str | None = None
    error: str | None = None
    fallback_message: str | None = None


class AvailabilityResult(BaseModel):
    available: bool
    reason: str | None = None
    wait_time: int | None = None


class TransferResult(BaseModel):
    success: bool
    message: str
    provider: str | None = None
    transfer_time: datetime | None = None
    is_alternative: bool = False
    alternatives: list[str] = Field(default_factory=list)
    error: str | None = None


class CallbackResult(BaseModel):
    success: bool
    message: str
    callback_time: datetime | None = None
    reference_number: str | None = None
    error: str | None = None


class MissedCallResult(BaseModel):
    success: bool
    session_id: str | None = None
    callback_scheduled: bool = False
    callback_time: datetime | None = None
    has_history: bool = False
    error: str | None = None
