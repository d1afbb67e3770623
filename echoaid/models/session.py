"""Caller session models.

A session is the unit of conversation state for one phone number.  It is
created on first contact (or on a missed call), bumped on every turn and
enriched by identity verification.  Sessions are never hard-deleted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from echoaid.models.enums import SessionStatus, TrustLevel, VerificationMethod


def new_session_id(prefix: str = "session") -> str:
    return f"{prefix}_{int(datetime.now(UTC).timestamp() * 1000)}_{uuid4().hex[:9]}"


class Coordinates(BaseModel):
    lat: float
    lng: float


class Location(BaseModel):
    """State / district pair used for provider matching."""

    state: str
    district: str
    coordinates: Coordinates | None = None


class UserProfile(BaseModel):
    """Profile built up from identity verification.

    Every field is optional: callers share as much as they are
    comfortable with and verification fragments are shallow-merged in.
    """

    name: str | None = None
    age: int | None = None
    gender: str | None = None
    category: str | None = None  # homeless, migrant, trans, undocumented, ...
    verification_method: VerificationMethod | None = None
    community_referral: str | None = None
    verified_at: datetime | None = None
    verification_id: str | None = None
    trust_level: TrustLevel | None = None


class Session(BaseModel):
    session_id: str = Field(default_factory=new_session_id)
    phone_number: str | None = None
    language: str = "hi"
    location: Location | None = None
    user_profile: UserProfile | None = None
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = Field(default_factory=lambda: datetime.now(UTC))
