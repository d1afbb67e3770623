"""Tests for the daily analytics rollup."""

from __future__ import annotations

from datetime import timedelta

import pytest

from echoaid.models.enums import CallStatus, CallType
from echoaid.models.interaction import AIResponse, UserInput, VoiceInteraction
from echoaid.models.session import Session, UserProfile
from echoaid.services.analytics import AnalyticsService, summarize_calls
from echoaid.services.call_log import CallLogRepository
from echoaid.services.sessions import SessionRepository
from echoaid.services.store import INTERACTIONS, InMemoryDocumentStore

from conftest import FIXED_NOW

DAY = FIXED_NOW.date().isoformat()


@pytest.fixture
def analytics(store, sessions, call_logs) -> AnalyticsService:
    return AnalyticsService(store, sessions, call_logs)


async def _interaction(store: InMemoryDocumentStore, intent: str, *, when=FIXED_NOW) -> None:
    interaction = VoiceInteraction(
        session_id="s",
        user_input=UserInput(transcript="...", language="hi"),
        ai_response=AIResponse(intent=intent),
        timestamp=when,
    )
    await store.insert(INTERACTIONS, interaction.interaction_id, interaction.model_dump(mode="json"))


class TestSummarizeCalls:
    async def test_counts(self, call_logs: CallLogRepository) -> None:
        logs = [
            await call_logs.log("s1", CallType.INBOUND, "111", CallStatus.CONNECTED),
            await call_logs.log("s2", CallType.INBOUND, "111", CallStatus.CONNECTED),
            await call_logs.log("s3", CallType.INBOUND, "222", CallStatus.CONNECTED),
            await call_logs.log("s1", CallType.TRANSFER, "111", CallStatus.CONNECTED, duration=100),
            await call_logs.log("s2", CallType.TRANSFER, "111", CallStatus.FAILED, duration=15),
            await call_logs.log("s3", CallType.OUTBOUND, "222", CallStatus.NO_ANSWER),
        ]
        assert summarize_calls(logs) == (3, 2, 1, 57.5)

    def test_empty(self) -> None:
        assert summarize_calls([]) == (0, 0, 0, 0.0)


class TestRollup:
    async def test_full_rollup(
        self,
        analytics: AnalyticsService,
        store: InMemoryDocumentStore,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
    ) -> None:
        await call_logs.log("s1", CallType.INBOUND, "111", CallStatus.CONNECTED, timestamp=FIXED_NOW)
        await call_logs.log("s1", CallType.TRANSFER, "111", CallStatus.CONNECTED, duration=90, timestamp=FIXED_NOW)
        await call_logs.log(
            "old", CallType.INBOUND, "999", CallStatus.CONNECTED, timestamp=FIXED_NOW - timedelta(days=1),
        )

        await sessions.create(
            Session(phone_number="111", language="en", created_at=FIXED_NOW,
                    user_profile=UserProfile(category="migrant")),
        )
        await sessions.create(
            Session(phone_number="222", language="ta", created_at=FIXED_NOW,
                    user_profile=UserProfile(category="refugee")),
        )
        await sessions.create(Session(phone_number="333", language="hi", created_at=FIXED_NOW))

        for intent in ("shelter", "shelter", "employment", "legal_aid", "help_general"):
            await _interaction(store, intent)
        await _interaction(store, "food", when=FIXED_NOW + timedelta(days=1))

        result = await analytics.rollup(DAY)
        metrics = result.metrics

        assert result.date == DAY
        assert metrics.total_calls == 1
        assert metrics.unique_users == 1
        assert metrics.successful_connections == 1
        assert metrics.average_call_duration == 90.0
        assert metrics.top_intents[0].intent == "shelter"
        assert metrics.top_intents[0].count == 2
        assert len(metrics.top_intents) == 4
        assert metrics.category_distribution["shelter"] == 2
        assert metrics.category_distribution["legal"] == 1
        assert metrics.category_distribution["food"] == 0
        assert metrics.language_distribution["en"] == 1
        assert metrics.language_distribution["ta"] == 1
        assert metrics.language_distribution["kn"] == 0
        assert metrics.user_categories == {
            "migrant": 1,
            "homeless": 0,
            "trans": 0,
            "undocumented": 0,
            "other": 1,
        }

    async def test_rollup_is_stored_and_replaced(self, analytics: AnalyticsService, call_logs) -> None:
        first = await analytics.rollup(DAY)
        assert await analytics.get(DAY) == first

        await call_logs.log("s1", CallType.INBOUND, "111", CallStatus.CONNECTED, timestamp=FIXED_NOW)
        await analytics.rollup(DAY)
        assert (await analytics.get(DAY)).metrics.total_calls == 1

    async def test_top_intents_capped_at_five(self, analytics: AnalyticsService, store) -> None:
        for intent in ("a", "b", "c", "d", "e", "f", "f"):
            await _interaction(store, intent)
        result = await analytics.rollup(DAY)
        assert len(result.metrics.top_intents) == 5
        assert result.metrics.top_intents[0].intent == "f"

    async def test_bad_date(self, analytics: AnalyticsService) -> None:
        with pytest.raises(ValueError):
            await analytics.rollup("yesterday")

    async def test_missing_day(self, analytics: AnalyticsService) -> None:
        assert await analytics.get("2020-01-01") is None
