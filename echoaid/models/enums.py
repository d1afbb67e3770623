from __future__ import annotations

from enum import StrEnum


class RoutingIntent(StrEnum):
    """Closed set of intents the routing engine dispatches on.

    Anything the classifier returns outside this set is routed as
    ``GENERAL``.
    """

    __slots__ = ()

    EMPLOYMENT = "employment"
    SHELTER = "shelter"
    FOOD = "food"
    HEALTHCARE = "healthcare"
    LEGAL_AID = "legal_aid"
    EMERGENCY = "emergency"
    GENERAL = "general"

    @classmethod
    def from_raw(cls, value: str | None) -> RoutingIntent:
        if not value:
            return cls.GENERAL
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.GENERAL


class SessionStatus(StrEnum):
    __slots__ = ()

    ACTIVE = "active"
    COMPLETED = "completed"
    TRANSFERRED = "transferred"
    MISSED_CALL_PENDING = "missed_call_pending"


class CallType(StrEnum):
    __slots__ = ()

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    TRANSFER = "transfer"
    SCHEDULED_CALLBACK = "scheduled_callback"


class CallStatus(StrEnum):
    __slots__ = ()

    CONNECTED = "connected"
    FAILED = "failed"
    BUSY = "busy"
    NO_ANSWER = "no_answer"
    ATTEMPTING = "attempting"
    SCHEDULED = "scheduled"


class ProviderType(StrEnum):
    __slots__ = ()

    NGO = "ngo"
    GOVERNMENT = "government"
    HELPLINE = "helpline"
    EMERGENCY = "emergency"


class Coverage(StrEnum):
    __slots__ = ()

    NATIONAL = "national"
    STATE = "state"
    DISTRICT = "district"

    @property
    def specificity(self) -> int:
        """District beats state beats national when priorities tie."""
        return _COVERAGE_SPECIFICITY[self]


_COVERAGE_SPECIFICITY: dict[Coverage, int] = {
    Coverage.DISTRICT: 3,
    Coverage.STATE: 2,
    Coverage.NATIONAL: 1,
}


class TrustLevel(StrEnum):
    __slots__ = ()

    NONE = "none"
    BASIC = "basic"
    VERIFIED = "verified"

    @property
    def rank(self) -> int:
        return _TRUST_RANK[self]


_TRUST_RANK: dict[TrustLevel, int] = {
    TrustLevel.NONE: 0,
    TrustLevel.BASIC: 1,
    TrustLevel.VERIFIED: 2,
}


class VerificationMethod(StrEnum):
    __slots__ = ()

    SELF_DECLARATION = "self_declaration"
    COMMUNITY_REFERRAL = "community_referral"
    VOICE_CONSENT = "voice_consent"
    DOCUMENT_ALTERNATIVE = "document_alternative"


class UrgencyLevel(StrEnum):
    __slots__ = ()

    EMERGENCY = "emergency"
    URGENT = "urgent"
    NORMAL = "normal"


class EmergencyCategory(StrEnum):
    __slots__ = ()

    MEDICAL = "medical"
    POLICE = "police"
    MENTAL_HEALTH = "mental_health"
    DOMESTIC_VIOLENCE = "domestic_violence"
    LEGAL = "legal"
    GENERAL = "general"
