"""Exception hierarchy for EchoAid services.

These are raised inside services and converted to structured failure
responses at the action boundary; callers on the phone never see them.
"""

from __future__ import annotations


class EchoAidError(Exception):
    """Base class for all EchoAid service errors."""


class SessionNotFoundError(EchoAidError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ProviderNotFoundError(EchoAidError):
    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider not found: {provider_id}")
        self.provider_id = provider_id


class VoiceProcessingError(EchoAidError):
    """Speech or NLU backend failed or is not configured."""


class TelephonyError(EchoAidError):
    """The carrier API rejected or failed a call operation."""
