"""Call orchestration: sessions, welcome prompts, transfers and callbacks.

Session lifecycle::

    new -> active -> transferred | completed | missed_call_pending

Every public operation is an action boundary: internal errors such as
:class:`SessionNotFoundError` are caught here, logged, and turned into a
localized failure the IVR can read out.  Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from functools import partial
from typing import TYPE_CHECKING, Final
from zoneinfo import ZoneInfo

import structlog

from echoaid.exceptions import ProviderNotFoundError
from echoaid.models.call_log import TransferTarget
from echoaid.models.calls import (
    AvailabilityResult,
    CallbackResult,
    IncomingCallResult,
    MissedCallResult,
    TransferResult,
)
from echoaid.models.directory import Provider
from echoaid.models.enums import CallStatus, CallType, SessionStatus, UrgencyLevel
from echoaid.models.session import Session, new_session_id
from echoaid.services.callback_scheduler import Clock, utcnow
from echoaid.services.telephony import TransferOutcome

if TYPE_CHECKING:
    from echoaid.services.call_log import CallLogRepository
    from echoaid.services.callback_scheduler import CallbackScheduler
    from echoaid.services.directory import DirectoryService
    from echoaid.services.localization import MessageCatalog
    from echoaid.services.sessions import SessionRepository
    from echoaid.services.telephony import TelephonyGateway

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CALLBACK_DELAYS: Final[dict[str, timedelta]] = {
    UrgencyLevel.EMERGENCY: timedelta(minutes=5),
    UrgencyLevel.URGENT: timedelta(minutes=30),
    UrgencyLevel.NORMAL: timedelta(hours=2),
}
DEFAULT_CALLBACK_DELAY: Final[timedelta] = timedelta(hours=4)

BUSINESS_HOURS: Final[tuple[int, int]] = (9, 18)  # inclusive, provider local time

ALL_BUSY_ALTERNATIVES: Final[list[str]] = ["schedule_callback", "record_message", "emergency_transfer"]
FAILED_TRANSFER_ALTERNATIVES: Final[list[str]] = ["record_message", "schedule_callback", "try_another_provider"]

# Looks for a substitute when the requested provider cannot take the call.
AlternativeProviderFinder = Callable[[Provider, str | None], Awaitable[Provider | None]]


async def no_alternative(provider: Provider, urgency_level: str | None) -> Provider | None:
    return None


def callback_deadline(urgency_level: str | None, now: datetime) -> datetime:
    """Deadline for a scheduled callback: 5m, 30m, 2h, or 4h for anything else."""
    return now + CALLBACK_DELAYS.get(urgency_level or "", DEFAULT_CALLBACK_DELAY)


def within_hours(hours: str, local_time: datetime) -> bool:
    if hours == "24x7":
        return True
    if hours == "business_hours":
        start, end = BUSINESS_HOURS
        return start <= local_time.hour <= end
    # Free-text schedules are not parsed; treat them as open.
    return True


def reference_number(now: datetime) -> str:
    return "CB" + str(int(now.timestamp() * 1000))[-6:]


class CallOrchestrator:
    """Sequences everything that happens on a call outside of NLU and routing."""

    def __init__(
        self,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        directory: DirectoryService,
        telephony: TelephonyGateway,
        scheduler: CallbackScheduler,
        messages: MessageCatalog,
        *,
        clock: Clock = utcnow,
        alternative_finder: AlternativeProviderFinder = no_alternative,
        default_language: str = "hi",
        session_reuse_window: timedelta = timedelta(hours=24),
        missed_call_history_window: timedelta = timedelta(days=7),
        missed_call_callback_delay: timedelta = timedelta(minutes=2),
        provider_timezone: str = "Asia/Kolkata",
    ) -> None:
        self._sessions = sessions
        self._call_logs = call_logs
        self._directory = directory
        self._telephony = telephony
        self._scheduler = scheduler
        self._messages = messages
        self._clock = clock
        self._find_alternative = alternative_finder
        self._default_language = default_language
        self._session_reuse_window = session_reuse_window
        self._missed_call_history_window = missed_call_history_window
        self._missed_call_callback_delay = missed_call_callback_delay
        self._tz = ZoneInfo(provider_timezone)

    # ------------------------------------------------------------------
    # Inbound calls
    # ------------------------------------------------------------------

    async def handle_incoming_call(
        self,
        from_number: str,
        call_sid: str,
        language: str | None = None,
    ) -> IncomingCallResult:
        """Create or resume the caller's session and greet them."""
        try:
            now = self._clock()
            session = await self._sessions.find_recent_by_phone(
                from_number, since=now - self._session_reuse_window,
            )
            is_returning = session is not None
            if session is not None:
                session = await self._sessions.patch(
                    session.session_id, last_activity=now, status=SessionStatus.ACTIVE,
                )
            else:
                session = await self._sessions.create(
                    Session(
                        phone_number=from_number,
                        language=language or self._default_language,
                        status=SessionStatus.ACTIVE,
                        created_at=now,
                        last_activity=now,
                    )
                )

            await self._call_logs.log(
                session.session_id,
                CallType.INBOUND,
                from_number,
                CallStatus.CONNECTED,
                call_sid=call_sid,
                timestamp=now,
            )

            key = "welcome.returning" if is_returning else "welcome.new"
            logger.info(
                "calls.incoming",
                session_id=session.session_id,
                returning=is_returning,
                language=session.language,
            )
            return IncomingCallResult(
                session_id=session.session_id,
                welcome_message=self._messages.get(key, session.language),
                language=session.language,
                is_returning_user=is_returning,
                next_action="listen_for_input",
            )
        except Exception:
            logger.error("calls.incoming_failed", call_sid=call_sid, exc_info=True)
            return IncomingCallResult(
                success=False,
                error="Failed to handle incoming call",
                fallback_message=self._messages.get("call.fallback", "hi"),
            )

    # ------------------------------------------------------------------
    # Availability and transfers
    # ------------------------------------------------------------------

    def is_available(self, provider: Provider, urgency_level: str | None = None) -> bool:
        """Capacity is always required; hours are waived for emergencies and 24x7 providers."""
        local_now = self._clock().astimezone(self._tz)
        return provider.capacity.has_room and (
            urgency_level == UrgencyLevel.EMERGENCY
            or provider.availability.emergency_24x7
            or within_hours(provider.availability.hours, local_now)
        )

    async def check_provider_availability(
        self,
        provider_id: str,
        urgency_level: str | None = None,
    ) -> AvailabilityResult:
        provider = await self._directory.get_provider(provider_id)
        if provider is None:
            return AvailabilityResult(available=False, reason="Provider not found")
        available = self.is_available(provider, urgency_level)
        return AvailabilityResult(
            available=available,
            reason=None if available else "Provider busy or outside hours",
            wait_time=provider.capacity.wait_time,
        )

    async def transfer_call(
        self,
        session_id: str,
        provider_id: str,
        transfer_reason: str,
        urgency_level: str | None = None,
    ) -> TransferResult:
        """Bridge the caller to *provider_id*, or offer fallbacks if it cannot take the call."""
        language: str | None = None
        try:
            session = await self._sessions.get(session_id)
            language = session.language if session else None
            provider = await self._directory.get_provider(provider_id)
            if provider is None:
                raise ProviderNotFoundError(provider_id)

            if not self.is_available(provider, urgency_level):
                logger.info(
                    "calls.provider_unavailable",
                    session_id=session_id,
                    provider_id=provider_id,
                    urgency=urgency_level,
                )
                alternative = await self._find_alternative(provider, urgency_level)
                if alternative is None:
                    return TransferResult(
                        success=False,
                        message=self._messages.get("transfer.all_busy", language),
                        alternatives=list(ALL_BUSY_ALTERNATIVES),
                    )
                return await self.execute_transfer(
                    session_id, alternative, transfer_reason, is_alternative=True,
                )

            return await self.execute_transfer(session_id, provider, transfer_reason)
        except Exception as exc:
            logger.error(
                "calls.transfer_failed",
                session_id=session_id,
                provider_id=provider_id,
                exc_info=True,
            )
            return TransferResult(
                success=False,
                message=self._messages.get("transfer.error", language),
                error=str(exc),
            )

    async def execute_transfer(
        self,
        session_id: str,
        provider: Provider,
        transfer_reason: str,
        *,
        is_alternative: bool = False,
    ) -> TransferResult:
        language: str | None = None
        try:
            session = await self._sessions.get(session_id)
            language = session.language if session else None
            caller_number = (session.phone_number if session else None) or ""
            await self._call_logs.log(
                session_id,
                CallType.TRANSFER,
                caller_number,
                CallStatus.ATTEMPTING,
                to_number=provider.contact.phone,
                transferred_to=TransferTarget(
                    provider_id=provider.provider_id,
                    provider_name=provider.name,
                    contact_person=provider.contact.contact_person,
                ),
                notes=transfer_reason,
            )

            try:
                outcome = await self._telephony.transfer(caller_number, provider.contact.phone)
            except Exception as exc:
                logger.warning(
                    "calls.gateway_transfer_error",
                    session_id=session_id,
                    provider_id=provider.provider_id,
                    exc_info=True,
                )
                outcome = TransferOutcome(success=False, error=str(exc))

            await self._call_logs.update_latest_status(
                session_id,
                CallStatus.CONNECTED if outcome.success else CallStatus.FAILED,
                duration=outcome.duration,
            )

            if not outcome.success:
                logger.info("calls.transfer_not_connected", session_id=session_id, error=outcome.error)
                return TransferResult(
                    success=False,
                    message=self._messages.get("transfer.connection_failed", language),
                    alternatives=list(FAILED_TRANSFER_ALTERNATIVES),
                )

            if session is not None:
                await self._sessions.patch(
                    session_id, status=SessionStatus.TRANSFERRED, last_activity=self._clock(),
                )
            logger.info(
                "calls.transferred",
                session_id=session_id,
                provider_id=provider.provider_id,
                alternative=is_alternative,
            )
            key = "transfer.connecting_alternative" if is_alternative else "transfer.connecting"
            return TransferResult(
                success=True,
                message=self._messages.get(key, language),
                provider=provider.name,
                transfer_time=self._clock(),
                is_alternative=is_alternative,
            )
        except Exception as exc:
            logger.error("calls.execute_transfer_failed", session_id=session_id, exc_info=True)
            return TransferResult(
                success=False,
                message=self._messages.get("transfer.technical_error", language),
                error=str(exc),
            )

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    async def schedule_callback(
        self,
        session_id: str,
        provider_id: str | None,
        urgency_level: str | None,
        preferred_time: str | None = None,
    ) -> CallbackResult:
        """Queue an outbound call back to the caller.

        The deadline depends only on urgency; a caller's preferred time is
        kept on the log row for the human follow-up.
        """
        language: str | None = None
        try:
            session = await self._sessions.require(session_id)
            language = session.language
            now = self._clock()
            deadline = callback_deadline(urgency_level, now)
            phone_number = session.phone_number or ""

            self._scheduler.schedule(
                deadline,
                partial(self.execute_callback, session_id, provider_id, phone_number, urgency_level),
                name="callback",
            )
            await self._call_logs.log(
                session_id,
                CallType.SCHEDULED_CALLBACK,
                phone_number,
                CallStatus.SCHEDULED,
                notes=f"preferred_time={preferred_time}" if preferred_time else None,
                timestamp=deadline,
            )

            local_time = deadline.astimezone(self._tz).strftime("%H:%M")
            logger.info(
                "calls.callback_scheduled",
                session_id=session_id,
                urgency=urgency_level,
                callback_time=deadline.isoformat(),
            )
            return CallbackResult(
                success=True,
                message=self._messages.get("callback.confirmation", language, time=local_time),
                callback_time=deadline,
                reference_number=reference_number(now),
            )
        except Exception as exc:
            logger.error("calls.callback_schedule_failed", session_id=session_id, exc_info=True)
            return CallbackResult(
                success=False,
                message=self._messages.get("callback.error", language),
                error=str(exc),
            )

    async def handle_missed_call(self, phone_number: str, timestamp: datetime) -> MissedCallResult:
        """Open a pending session for a missed call and ring the caller back shortly."""
        try:
            now = self._clock()
            previous = await self._sessions.find_recent_by_phone(
                phone_number, since=now - self._missed_call_history_window,
            )
            has_history = previous is not None

            session = await self._sessions.create(
                Session(
                    session_id=new_session_id("missed"),
                    phone_number=phone_number,
                    language=self._default_language,
                    status=SessionStatus.MISSED_CALL_PENDING,
                    created_at=timestamp,
                    last_activity=timestamp,
                )
            )

            callback_time = now + self._missed_call_callback_delay
            self._scheduler.schedule(
                callback_time,
                partial(self.execute_missed_call_callback, session.session_id, phone_number, has_history),
                name="missed_call_callback",
            )
            logger.info(
                "calls.missed_call",
                session_id=session.session_id,
                has_history=has_history,
                callback_time=callback_time.isoformat(),
            )
            return MissedCallResult(
                success=True,
                session_id=session.session_id,
                callback_scheduled=True,
                callback_time=callback_time,
                has_history=has_history,
            )
        except Exception as exc:
            logger.error("calls.missed_call_failed", exc_info=True)
            return MissedCallResult(success=False, error=str(exc))

    async def execute_callback(
        self,
        session_id: str,
        provider_id: str | None,
        phone_number: str,
        urgency_level: str | None,
    ) -> None:
        """Deferred job: place the scheduled outbound call."""
        logger.info(
            "calls.callback_executing",
            session_id=session_id,
            provider_id=provider_id,
            urgency=urgency_level,
        )
        await self._place_outbound(session_id, phone_number)

    async def execute_missed_call_callback(
        self,
        session_id: str,
        phone_number: str,
        has_history: bool,
    ) -> None:
        """Deferred job: ring back a missed caller and reactivate their session."""
        logger.info("calls.missed_callback_executing", session_id=session_id, has_history=has_history)
        if await self._place_outbound(session_id, phone_number):
            await self._sessions.patch(session_id, status=SessionStatus.ACTIVE, last_activity=self._clock())

    async def _place_outbound(self, session_id: str, phone_number: str) -> bool:
        try:
            result = await self._telephony.place_call(phone_number)
        except Exception:
            logger.error("calls.outbound_failed", session_id=session_id, exc_info=True)
            await self._call_logs.log(
                session_id, CallType.OUTBOUND, phone_number, CallStatus.FAILED,
                to_number=phone_number,
            )
            return False

        await self._call_logs.log(
            session_id,
            CallType.OUTBOUND,
            phone_number,
            CallStatus.CONNECTED if result.connected else CallStatus.NO_ANSWER,
            to_number=phone_number,
            duration=result.duration,
            call_sid=result.call_sid,
        )
        return result.connected
