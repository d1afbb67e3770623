"""Call event log.

Every telephony event is recorded as a :class:`CallLog` row.  A status
change never appends: it patches the newest row for the session.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from echoaid.models.call_log import CallLog, TransferTarget
from echoaid.models.enums import CallStatus, CallType
from echoaid.services.store import CALL_LOGS, DocumentStore

logger = structlog.get_logger(__name__)


class CallLogRepository:
    __slots__ = ("_store",)

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def log(
        self,
        session_id: str,
        call_type: CallType,
        from_number: str,
        status: CallStatus,
        *,
        to_number: str | None = None,
        transferred_to: TransferTarget | None = None,
        duration: int | None = None,
        outcome: str | None = None,
        notes: str | None = None,
        call_sid: str | None = None,
        timestamp: datetime | None = None,
    ) -> CallLog:
        entry = CallLog(
            session_id=session_id,
            call_type=call_type,
            from_number=from_number,
            to_number=to_number,
            status=status,
            transferred_to=transferred_to,
            duration=duration,
            outcome=outcome,
            follow_up_required=status == CallStatus.FAILED,
            notes=notes,
            call_sid=call_sid,
            timestamp=timestamp or datetime.now(UTC),
        )
        await self._store.insert(CALL_LOGS, entry.log_id, entry.model_dump(mode="json"))
        logger.info(
            "call_log.recorded",
            session_id=session_id,
            call_type=call_type.value,
            status=status.value,
        )
        return entry

    async def for_session(self, session_id: str) -> list[CallLog]:
        return [CallLog.model_validate(doc) for doc in await self._store.find(CALL_LOGS, session_id=session_id)]

    async def list_all(self) -> list[CallLog]:
        return [CallLog.model_validate(doc) for doc in await self._store.find(CALL_LOGS)]

    async def update_latest_status(
        self,
        session_id: str,
        status: CallStatus,
        *,
        duration: int | None = None,
        outcome: str | None = None,
    ) -> CallLog | None:
        """Patch the newest row for *session_id*; returns ``None`` if it has none."""
        rows = await self._store.find(CALL_LOGS, session_id=session_id)
        if not rows:
            logger.warning("call_log.no_row_to_update", session_id=session_id)
            return None

        fields: dict[str, Any] = {"status": status.value}
        if duration is not None:
            fields["duration"] = duration
        if outcome is not None:
            fields["outcome"] = outcome
        updated = await self._store.patch(CALL_LOGS, rows[-1]["log_id"], fields)
        return CallLog.model_validate(updated) if updated is not None else None
