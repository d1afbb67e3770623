"""Tests for the call orchestrator: sessions, transfers, callbacks and missed calls."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from echoaid.models.enums import CallStatus, CallType, SessionStatus
from echoaid.models.session import Session
from echoaid.services.call_log import CallLogRepository
from echoaid.services.call_orchestrator import (
    ALL_BUSY_ALTERNATIVES,
    FAILED_TRANSFER_ALTERNATIVES,
    CallOrchestrator,
    callback_deadline,
    reference_number,
    within_hours,
)
from echoaid.services.callback_scheduler import ScheduledCallback
from echoaid.services.directory import DirectoryService
from echoaid.services.localization import MessageCatalog
from echoaid.services.sessions import SessionRepository
from echoaid.services.telephony import MockTelephonyGateway, OutboundCallResult, TransferOutcome

from conftest import FIXED_NOW


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingScheduler:
    """Captures scheduled jobs instead of creating asyncio tasks."""

    def __init__(self) -> None:
        self.jobs: list[tuple[datetime, object, str]] = []

    def schedule(self, run_at, job, *, name="callback"):
        self.jobs.append((run_at, job, name))
        return ScheduledCallback(job_id=str(len(self.jobs)), name=name, run_at=run_at)


class ExplodingGateway(MockTelephonyGateway):
    async def transfer(self, caller_number: str, to_number: str) -> TransferOutcome:
        raise ConnectionError("carrier unreachable")

    async def place_call(self, to_number: str) -> OutboundCallResult:
        raise ConnectionError("carrier unreachable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def gateway() -> MockTelephonyGateway:
    return MockTelephonyGateway()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def orchestrator(
    sessions: SessionRepository,
    call_logs: CallLogRepository,
    directory: DirectoryService,
    gateway: MockTelephonyGateway,
    scheduler: RecordingScheduler,
    messages: MessageCatalog,
    clock: FakeClock,
) -> CallOrchestrator:
    return CallOrchestrator(
        sessions, call_logs, directory, gateway, scheduler, messages, clock=clock,  # type: ignore[arg-type]
    )


# -----------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------


class TestCallbackDeadline:
    @pytest.mark.parametrize(
        ("urgency", "delta"),
        [
            ("emergency", timedelta(minutes=5)),
            ("urgent", timedelta(minutes=30)),
            ("normal", timedelta(hours=2)),
            ("whenever", timedelta(hours=4)),
            (None, timedelta(hours=4)),
        ],
    )
    def test_deadline(self, urgency: str | None, delta: timedelta) -> None:
        assert callback_deadline(urgency, FIXED_NOW) == FIXED_NOW + delta


class TestWithinHours:
    def test_business_hours_bounds_are_inclusive(self) -> None:
        assert within_hours("business_hours", datetime(2024, 5, 1, 9, 0))
        assert within_hours("business_hours", datetime(2024, 5, 1, 18, 59))
        assert not within_hours("business_hours", datetime(2024, 5, 1, 8, 59))
        assert not within_hours("business_hours", datetime(2024, 5, 1, 19, 0))

    def test_24x7_and_free_text(self) -> None:
        assert within_hours("24x7", datetime(2024, 5, 1, 3, 0))
        assert within_hours("Mon-Sat mornings", datetime(2024, 5, 1, 3, 0))


def test_reference_number_format() -> None:
    ref = reference_number(FIXED_NOW)
    assert ref.startswith("CB")
    assert len(ref) == 8
    assert ref[2:].isdigit()


# -----------------------------------------------------------------------
# Incoming calls
# -----------------------------------------------------------------------


class TestIncomingCall:
    async def test_new_caller_gets_new_session(
        self, orchestrator: CallOrchestrator, call_logs: CallLogRepository, messages: MessageCatalog,
    ) -> None:
        result = await orchestrator.handle_incoming_call("+919800000001", "CA1", "en")

        assert result.success is True
        assert result.is_returning_user is False
        assert result.language == "en"
        assert result.welcome_message == messages.get("welcome.new", "en")
        assert result.next_action == "listen_for_input"

        logs = await call_logs.for_session(result.session_id)
        assert len(logs) == 1
        assert logs[0].call_type == CallType.INBOUND
        assert logs[0].status == CallStatus.CONNECTED
        assert logs[0].call_sid == "CA1"

    async def test_default_language(self, orchestrator: CallOrchestrator) -> None:
        result = await orchestrator.handle_incoming_call("+919800000001", "CA1")
        assert result.language == "hi"

    async def test_same_number_within_24h_reuses_session(
        self, orchestrator: CallOrchestrator, clock: FakeClock, messages: MessageCatalog,
    ) -> None:
        first = await orchestrator.handle_incoming_call("+919800000001", "CA1", "en")
        clock.advance(timedelta(hours=23))
        second = await orchestrator.handle_incoming_call("+919800000001", "CA2")

        assert second.session_id == first.session_id
        assert second.is_returning_user is True
        assert second.welcome_message == messages.get("welcome.returning", "en")

    async def test_same_number_after_window_gets_new_session(
        self, orchestrator: CallOrchestrator, clock: FakeClock,
    ) -> None:
        first = await orchestrator.handle_incoming_call("+919800000001", "CA1")
        clock.advance(timedelta(hours=25))
        second = await orchestrator.handle_incoming_call("+919800000001", "CA2")

        assert second.session_id != first.session_id
        assert second.is_returning_user is False

    async def test_returning_call_bumps_last_activity(
        self, orchestrator: CallOrchestrator, sessions: SessionRepository, clock: FakeClock,
    ) -> None:
        first = await orchestrator.handle_incoming_call("+919800000001", "CA1")
        clock.advance(timedelta(hours=3))
        await orchestrator.handle_incoming_call("+919800000001", "CA2")
        session = await sessions.get(first.session_id)
        assert session.last_activity == clock.now

    async def test_store_failure_returns_fallback(
        self, call_logs, directory, gateway, scheduler, messages, clock,
    ) -> None:
        class BrokenSessions:
            async def find_recent_by_phone(self, *args, **kwargs):
                raise RuntimeError("store down")

        orchestrator = CallOrchestrator(
            BrokenSessions(), call_logs, directory, gateway, scheduler, messages, clock=clock,  # type: ignore[arg-type]
        )
        result = await orchestrator.handle_incoming_call("+919800000001", "CA1")
        assert result.success is False
        assert result.fallback_message == messages.get("call.fallback", "hi")


# -----------------------------------------------------------------------
# Availability and transfers
# -----------------------------------------------------------------------


class TestAvailability:
    def test_full_provider_never_available_without_emergency(
        self, orchestrator: CallOrchestrator, make_provider,
    ) -> None:
        full = make_provider("full", current_load=10, max_capacity=10, emergency_24x7=True, hours="24x7")
        for urgency in (None, "normal", "urgent"):
            assert orchestrator.is_available(full, urgency) is False

    def test_full_provider_unavailable_even_in_emergency(
        self, orchestrator: CallOrchestrator, make_provider,
    ) -> None:
        full = make_provider("full", current_load=12, max_capacity=10)
        assert orchestrator.is_available(full, "emergency") is False

    def test_business_hours_in_provider_timezone(
        self, orchestrator: CallOrchestrator, clock: FakeClock, make_provider,
    ) -> None:
        provider = make_provider("p")
        assert orchestrator.is_available(provider) is True  # 11:30 IST
        clock.now = FIXED_NOW + timedelta(hours=16)  # 03:30 IST next day
        assert orchestrator.is_available(provider) is False
        assert orchestrator.is_available(provider, "emergency") is True

    async def test_check_provider_availability(
        self, orchestrator: CallOrchestrator, directory: DirectoryService, make_provider,
    ) -> None:
        await directory.add_provider(make_provider("p"))
        result = await orchestrator.check_provider_availability("p")
        assert result.available is True
        assert result.wait_time == 15

        missing = await orchestrator.check_provider_availability("nope")
        assert missing.available is False
        assert missing.reason == "Provider not found"


class TestTransfer:
    async def _session(self, sessions: SessionRepository) -> Session:
        return await sessions.create(Session(phone_number="+919800000001", language="en"))

    async def test_successful_transfer(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        directory: DirectoryService,
        gateway: MockTelephonyGateway,
        make_provider,
    ) -> None:
        session = await self._session(sessions)
        await directory.add_provider(make_provider("p", phone="+911100000000"))

        result = await orchestrator.transfer_call(session.session_id, "p", "needs work")

        assert result.success is True
        assert result.provider == "Provider p"
        assert result.is_alternative is False
        assert gateway.transfers == [("+919800000001", "+911100000000")]

        logs = await call_logs.for_session(session.session_id)
        assert len(logs) == 1, "status changes patch the row instead of appending"
        assert logs[0].call_type == CallType.TRANSFER
        assert logs[0].status == CallStatus.CONNECTED
        assert logs[0].duration == 120
        assert logs[0].transferred_to.provider_id == "p"
        assert (await sessions.get(session.session_id)).status == SessionStatus.TRANSFERRED

    async def test_transfer_bumps_activity_on_the_injected_clock(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        directory: DirectoryService,
        clock: FakeClock,
        make_provider,
    ) -> None:
        session = await self._session(sessions)
        await directory.add_provider(make_provider("p"))
        clock.advance(timedelta(hours=3))

        await orchestrator.transfer_call(session.session_id, "p", "needs work")

        assert (await sessions.get(session.session_id)).last_activity == clock.now

    async def test_failed_transfer_offers_alternatives(
        self,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        directory: DirectoryService,
        scheduler: RecordingScheduler,
        messages: MessageCatalog,
        clock: FakeClock,
        make_provider,
    ) -> None:
        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, MockTelephonyGateway(success=False), scheduler, messages,  # type: ignore[arg-type]
            clock=clock,
        )
        session = await self._session(sessions)
        await directory.add_provider(make_provider("p"))

        result = await orchestrator.transfer_call(session.session_id, "p", "needs work")

        assert result.success is False
        assert result.alternatives == FAILED_TRANSFER_ALTERNATIVES
        assert result.message == messages.get("transfer.connection_failed", "en")
        logs = await call_logs.for_session(session.session_id)
        assert [log.status for log in logs] == [CallStatus.FAILED]
        assert (await sessions.get(session.session_id)).status == SessionStatus.ACTIVE

    async def test_gateway_exception_counts_as_failed_transfer(
        self, sessions, call_logs, directory, scheduler, messages, clock, make_provider,
    ) -> None:
        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, ExplodingGateway(), scheduler, messages, clock=clock,  # type: ignore[arg-type]
        )
        session = await self._session(sessions)
        await directory.add_provider(make_provider("p"))

        result = await orchestrator.transfer_call(session.session_id, "p", "needs work")
        assert result.success is False
        assert result.alternatives == FAILED_TRANSFER_ALTERNATIVES

    async def test_busy_provider_without_alternative(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        directory: DirectoryService,
        gateway: MockTelephonyGateway,
        messages: MessageCatalog,
        make_provider,
    ) -> None:
        session = await self._session(sessions)
        await directory.add_provider(make_provider("busy", current_load=5, max_capacity=5))

        result = await orchestrator.transfer_call(session.session_id, "busy", "needs work", "urgent")

        assert result.success is False
        assert result.alternatives == ALL_BUSY_ALTERNATIVES
        assert result.message == messages.get("transfer.all_busy", "en")
        assert gateway.transfers == []

    async def test_busy_provider_uses_alternative(
        self, sessions, call_logs, directory, gateway, scheduler, messages, clock, make_provider,
    ) -> None:
        backup = make_provider("backup", phone="+912200000000")

        async def find_backup(provider, urgency_level):
            return backup

        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, gateway, scheduler, messages,  # type: ignore[arg-type]
            clock=clock, alternative_finder=find_backup,
        )
        session = await self._session(sessions)
        await directory.add_provider(make_provider("busy", current_load=5, max_capacity=5))

        result = await orchestrator.transfer_call(session.session_id, "busy", "needs work")

        assert result.success is True
        assert result.is_alternative is True
        assert result.message == messages.get("transfer.connecting_alternative", "en")
        assert gateway.transfers[-1][1] == "+912200000000"

    async def test_unknown_provider(
        self, orchestrator: CallOrchestrator, sessions: SessionRepository, messages: MessageCatalog,
    ) -> None:
        session = await self._session(sessions)
        result = await orchestrator.transfer_call(session.session_id, "ghost", "needs work")
        assert result.success is False
        assert result.message == messages.get("transfer.error", "en")
        assert "ghost" in result.error


# -----------------------------------------------------------------------
# Callbacks and missed calls
# -----------------------------------------------------------------------


class TestCallbacks:
    async def test_schedule_callback(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        scheduler: RecordingScheduler,
    ) -> None:
        session = await sessions.create(Session(phone_number="+919800000001", language="en"))

        result = await orchestrator.schedule_callback(session.session_id, "p", "urgent", "evening")

        assert result.success is True
        assert result.callback_time == FIXED_NOW + timedelta(minutes=30)
        assert result.reference_number.startswith("CB")
        assert "12:00" in result.message  # 06:30 UTC is 12:00 IST

        run_at, _job, name = scheduler.jobs[0]
        assert run_at == FIXED_NOW + timedelta(minutes=30)
        assert name == "callback"

        logs = await call_logs.for_session(session.session_id)
        assert logs[0].call_type == CallType.SCHEDULED_CALLBACK
        assert logs[0].status == CallStatus.SCHEDULED
        assert logs[0].notes == "preferred_time=evening"

    async def test_emergency_callback_in_five_minutes(
        self, orchestrator: CallOrchestrator, sessions: SessionRepository,
    ) -> None:
        session = await sessions.create(Session(phone_number="+919800000001"))
        result = await orchestrator.schedule_callback(session.session_id, None, "emergency")
        assert result.callback_time == FIXED_NOW + timedelta(minutes=5)

    async def test_schedule_callback_unknown_session(
        self, orchestrator: CallOrchestrator, scheduler: RecordingScheduler, messages: MessageCatalog,
    ) -> None:
        result = await orchestrator.schedule_callback("missing", None, "urgent")
        assert result.success is False
        assert result.message == messages.get("callback.error", "hi")
        assert scheduler.jobs == []

    async def test_scheduled_job_places_outbound_call(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        scheduler: RecordingScheduler,
        gateway: MockTelephonyGateway,
    ) -> None:
        session = await sessions.create(Session(phone_number="+919800000001"))
        await orchestrator.schedule_callback(session.session_id, None, "normal")

        _run_at, job, _name = scheduler.jobs[0]
        await job()

        assert gateway.calls == ["+919800000001"]
        logs = await call_logs.for_session(session.session_id)
        assert logs[-1].call_type == CallType.OUTBOUND
        assert logs[-1].status == CallStatus.CONNECTED


class TestMissedCall:
    async def test_missed_call_creates_pending_session(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
        scheduler: RecordingScheduler,
    ) -> None:
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)

        assert result.success is True
        assert result.session_id.startswith("missed_")
        assert result.callback_scheduled is True
        assert result.callback_time == FIXED_NOW + timedelta(minutes=2)
        assert result.has_history is False

        session = await sessions.get(result.session_id)
        assert session.status == SessionStatus.MISSED_CALL_PENDING
        assert session.language == "hi"
        assert await call_logs.for_session(result.session_id) == []
        assert scheduler.jobs[0][2] == "missed_call_callback"

    async def test_missed_call_uses_configured_default_language(
        self, sessions, call_logs, directory, gateway, scheduler, messages, clock,
    ) -> None:
        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, gateway, scheduler, messages,  # type: ignore[arg-type]
            clock=clock, default_language="ta",
        )
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        assert (await sessions.get(result.session_id)).language == "ta"

    async def test_history_within_seven_days(
        self, orchestrator: CallOrchestrator, sessions: SessionRepository,
    ) -> None:
        await sessions.create(
            Session(phone_number="+919800000002", last_activity=FIXED_NOW - timedelta(days=6)),
        )
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        assert result.has_history is True

    async def test_old_history_ignored(
        self, orchestrator: CallOrchestrator, sessions: SessionRepository,
    ) -> None:
        await sessions.create(
            Session(phone_number="+919800000002", last_activity=FIXED_NOW - timedelta(days=8)),
        )
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        assert result.has_history is False

    async def test_answered_callback_reactivates_session(
        self,
        orchestrator: CallOrchestrator,
        sessions: SessionRepository,
        scheduler: RecordingScheduler,
        clock: FakeClock,
    ) -> None:
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        clock.advance(timedelta(minutes=2))
        await scheduler.jobs[0][1]()

        session = await sessions.get(result.session_id)
        assert session.status == SessionStatus.ACTIVE
        assert session.last_activity == clock.now

    async def test_unanswered_callback_keeps_pending(
        self, sessions, call_logs, directory, scheduler, messages, clock,
    ) -> None:
        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, MockTelephonyGateway(answer=False), scheduler, messages,  # type: ignore[arg-type]
            clock=clock,
        )
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        await scheduler.jobs[0][1]()

        assert (await sessions.get(result.session_id)).status == SessionStatus.MISSED_CALL_PENDING
        logs = await call_logs.for_session(result.session_id)
        assert [log.status for log in logs] == [CallStatus.NO_ANSWER]

    async def test_outbound_exception_is_logged_as_failed(
        self, sessions, call_logs, directory, scheduler, messages, clock,
    ) -> None:
        orchestrator = CallOrchestrator(
            sessions, call_logs, directory, ExplodingGateway(), scheduler, messages, clock=clock,  # type: ignore[arg-type]
        )
        result = await orchestrator.handle_missed_call("+919800000002", FIXED_NOW)
        await scheduler.jobs[0][1]()

        logs = await call_logs.for_session(result.session_id)
        assert logs[0].status == CallStatus.FAILED
        assert logs[0].follow_up_required is True
