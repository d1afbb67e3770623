"""Telephony gateway for call transfers and outbound callbacks.

The orchestrator never talks to a carrier directly; it goes through a
:class:`TelephonyGateway`.  Two implementations ship:

* :class:`ExotelGateway` -- Exotel's Calls API over ``httpx``.  Exotel
  bridges two legs: it rings the first number and, once answered,
  connects it to the second.
* :class:`MockTelephonyGateway` -- deterministic outcomes for local
  development and tests; records every request it receives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

import httpx
import structlog

from echoaid.exceptions import TelephonyError

if TYPE_CHECKING:
    from config.settings import Settings

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class TransferOutcome:
    """Result of bridging a caller to a provider."""

    success: bool
    duration: int | None = None  # seconds
    call_sid: str | None = None
    error: str | None = None


@dataclass(slots=True)
class OutboundCallResult:
    connected: bool
    call_sid: str | None = None
    duration: int | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class TelephonyGateway:
    """Abstract carrier interface."""

    name: str = "base"

    async def transfer(self, caller_number: str, to_number: str) -> TransferOutcome:
        raise NotImplementedError

    async def place_call(self, to_number: str) -> OutboundCallResult:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class ExotelGateway(TelephonyGateway):
    """Exotel Calls API integration.

    Exotel is widely used by Indian helplines and supports virtual
    numbers on every domestic operator.
    """

    name = "exotel"
    _BASE_URL: Final[str] = "https://api.exotel.com/v1/Accounts"
    # A transfer counts only once both legs are bridged; an outbound ring
    # succeeds as soon as the carrier accepts it.
    _BRIDGED_STATES: Final[frozenset[str]] = frozenset({"in-progress", "completed"})
    _ACCEPTED_STATES: Final[frozenset[str]] = _BRIDGED_STATES | {"queued", "ringing"}

    def __init__(
        self,
        sid: str,
        api_key: str,
        api_token: str,
        caller_id: str,
        *,
        timeout: float = 10.0,
    ) -> None:
        if not (sid and api_key and api_token and caller_id):
            raise ValueError("Exotel requires sid, api_key, api_token and caller_id.")
        self._sid = sid
        self._caller_id = caller_id
        self._client = httpx.AsyncClient(
            base_url=f"{self._BASE_URL}/{sid}",
            auth=(api_key, api_token),
            timeout=timeout,
        )

    async def _connect(self, first: str, second: str) -> dict[str, Any]:
        try:
            response = await self._client.post(
                "/Calls/connect.json",
                data={"From": first, "To": second, "CallerId": self._caller_id},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TelephonyError(f"Exotel connect failed: {exc}") from exc
        return response.json().get("Call", {})

    async def transfer(self, caller_number: str, to_number: str) -> TransferOutcome:
        call = await self._connect(caller_number, to_number)
        status = str(call.get("Status", "")).lower()
        duration = call.get("Duration")
        return TransferOutcome(
            success=status in self._BRIDGED_STATES,
            duration=int(duration) if duration else None,
            call_sid=call.get("Sid"),
            error=None if status in self._BRIDGED_STATES else status or "unknown",
        )

    async def place_call(self, to_number: str) -> OutboundCallResult:
        # Ring the caller first, then bridge them to the helpline number.
        call = await self._connect(to_number, self._caller_id)
        status = str(call.get("Status", "")).lower()
        return OutboundCallResult(
            connected=status in self._ACCEPTED_STATES,
            call_sid=call.get("Sid"),
            raw=call,
        )

    async def close(self) -> None:
        await self._client.aclose()


class MockTelephonyGateway(TelephonyGateway):
    """Deterministic gateway for local development and testing."""

    name = "mock"

    def __init__(self, *, success: bool = True, duration: int = 120, answer: bool = True) -> None:
        self.success = success
        self.duration = duration
        self.answer = answer
        self.transfers: list[tuple[str, str]] = []
        self.calls: list[str] = []

    async def transfer(self, caller_number: str, to_number: str) -> TransferOutcome:
        self.transfers.append((caller_number, to_number))
        logger.info("telephony.mock_transfer", to=to_number, success=self.success)
        if self.success:
            return TransferOutcome(success=True, duration=self.duration, call_sid=f"mock-{len(self.transfers)}")
        return TransferOutcome(success=False, error="mock_failure")

    async def place_call(self, to_number: str) -> OutboundCallResult:
        self.calls.append(to_number)
        logger.info("telephony.mock_call", to=to_number, answered=self.answer)
        return OutboundCallResult(
            connected=self.answer,
            call_sid=f"mock-out-{len(self.calls)}",
            duration=self.duration if self.answer else None,
        )


def create_gateway(settings: Settings) -> TelephonyGateway:
    """Build the configured gateway; falls back to the mock when Exotel is not configured."""
    if settings.telephony_provider == "exotel":
        try:
            return ExotelGateway(
                sid=settings.exotel_sid,
                api_key=settings.exotel_api_key,
                api_token=settings.exotel_api_token,
                caller_id=settings.exotel_caller_id,
            )
        except ValueError:
            logger.warning("telephony.exotel_not_configured_using_mock", exc_info=True)
    return MockTelephonyGateway(success=settings.mock_transfer_success)
