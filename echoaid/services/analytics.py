"""Daily usage rollup.

Aggregates one UTC day of call logs, sessions and voice interactions
into a :class:`DailyAnalytics` row keyed by ``YYYY-MM-DD``.  Re-running a
rollup for the same day replaces the stored row.
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Final

import structlog

from config.languages import LANGUAGES
from echoaid.models.analytics import DailyAnalytics, DailyMetrics, IntentCount
from echoaid.models.call_log import CallLog
from echoaid.models.enums import CallStatus, CallType
from echoaid.models.interaction import VoiceInteraction
from echoaid.services.store import ANALYTICS, INTERACTIONS

if TYPE_CHECKING:
    from echoaid.services.call_log import CallLogRepository
    from echoaid.services.sessions import SessionRepository
    from echoaid.services.store import DocumentStore

logger = structlog.get_logger(__name__)

TOP_INTENTS: Final[int] = 5

# Intent -> dashboard category.  Intents outside the map are not counted.
INTENT_CATEGORIES: Final[dict[str, str]] = {
    "employment": "employment",
    "shelter": "shelter",
    "food": "food",
    "healthcare": "healthcare",
    "legal_aid": "legal",
    "emergency": "emergency",
}
USER_CATEGORIES: Final[tuple[str, ...]] = ("migrant", "homeless", "trans", "undocumented")


def _on_day(moment: datetime, day: date) -> bool:
    return moment.astimezone(UTC).date() == day


def summarize_calls(logs: list[CallLog]) -> tuple[int, int, int, float]:
    """Return ``(total_calls, unique_users, successful_connections, average_duration)``."""
    inbound = [log for log in logs if log.call_type == CallType.INBOUND]
    connected_transfers = [
        log for log in logs if log.call_type == CallType.TRANSFER and log.status == CallStatus.CONNECTED
    ]
    durations = [log.duration for log in logs if log.duration is not None]
    average = round(sum(durations) / len(durations), 1) if durations else 0.0
    return len(inbound), len({log.from_number for log in inbound}), len(connected_transfers), average


class AnalyticsService:
    __slots__ = ("_call_logs", "_sessions", "_store")

    def __init__(
        self,
        store: DocumentStore,
        sessions: SessionRepository,
        call_logs: CallLogRepository,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._call_logs = call_logs

    async def rollup(self, day: str) -> DailyAnalytics:
        """Compute and store metrics for *day* (``YYYY-MM-DD``).

        Raises :class:`ValueError` for a malformed date.
        """
        target = date.fromisoformat(day)

        logs = [log for log in await self._call_logs.list_all() if _on_day(log.timestamp, target)]
        sessions = [s for s in await self._sessions.list_all() if _on_day(s.created_at, target)]
        interactions = [
            VoiceInteraction.model_validate(doc)
            for doc in await self._store.find(INTERACTIONS)
        ]
        interactions = [i for i in interactions if _on_day(i.timestamp, target)]

        total_calls, unique_users, connections, average = summarize_calls(logs)

        intent_counts = Counter(i.ai_response.intent for i in interactions)
        categories = dict.fromkeys(INTENT_CATEGORIES.values(), 0)
        for intent, count in intent_counts.items():
            if intent in INTENT_CATEGORIES:
                categories[INTENT_CATEGORIES[intent]] += count

        languages = dict.fromkeys(LANGUAGES, 0)
        users = dict.fromkeys((*USER_CATEGORIES, "other"), 0)
        for session in sessions:
            if session.language in languages:
                languages[session.language] += 1
            category = session.user_profile.category if session.user_profile else None
            if category:
                users[category if category in USER_CATEGORIES else "other"] += 1

        analytics = DailyAnalytics(
            date=target.isoformat(),
            metrics=DailyMetrics(
                total_calls=total_calls,
                unique_users=unique_users,
                successful_connections=connections,
                average_call_duration=average,
                top_intents=[
                    IntentCount(intent=intent, count=count)
                    for intent, count in intent_counts.most_common(TOP_INTENTS)
                ],
                language_distribution=languages,
                category_distribution=categories,
                user_categories=users,
            ),
        )
        await self._store.insert(ANALYTICS, analytics.date, analytics.model_dump(mode="json"))
        logger.info(
            "analytics.rolled_up",
            date=analytics.date,
            total_calls=total_calls,
            interactions=len(interactions),
        )
        return analytics

    async def get(self, day: str) -> DailyAnalytics | None:
        doc = await self._store.get(ANALYTICS, day)
        return DailyAnalytics.model_validate(doc) if doc is not None else None
