"""Session persistence on top of the document store."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from echoaid.exceptions import SessionNotFoundError
from echoaid.models.session import Session
from echoaid.services.store import SESSIONS, DocumentStore

logger = structlog.get_logger(__name__)


class SessionRepository:
    """Create, look up and patch caller sessions."""

    __slots__ = ("_store",)

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def create(self, session: Session) -> Session:
        await self._store.insert(SESSIONS, session.session_id, session.model_dump(mode="json"))
        logger.info(
            "sessions.created",
            session_id=session.session_id,
            language=session.language,
            status=session.status.value,
        )
        return session

    async def get(self, session_id: str) -> Session | None:
        doc = await self._store.get(SESSIONS, session_id)
        return Session.model_validate(doc) if doc is not None else None

    async def require(self, session_id: str) -> Session:
        session = await self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def find_by_phone(self, phone_number: str) -> list[Session]:
        docs = await self._store.find(SESSIONS, phone_number=phone_number)
        return [Session.model_validate(doc) for doc in docs]

    async def find_recent_by_phone(self, phone_number: str, since: datetime) -> Session | None:
        """Return the most recently active session for *phone_number*
        whose ``last_activity`` is at or after *since*."""
        candidates = [
            s for s in await self.find_by_phone(phone_number) if s.last_activity >= since
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.last_activity)

    async def patch(self, session_id: str, **fields: Any) -> Session:
        """Overwrite top-level fields; ``last_activity`` is bumped unless given."""
        fields.setdefault("last_activity", datetime.now(UTC))
        encoded = Session.model_validate(
            {**(await self.require(session_id)).model_dump(), **fields},
        ).model_dump(mode="json")
        updated = await self._store.patch(
            SESSIONS,
            session_id,
            {key: encoded[key] for key in fields},
        )
        if updated is None:
            raise SessionNotFoundError(session_id)
        return Session.model_validate(updated)

    async def list_all(self) -> list[Session]:
        return [Session.model_validate(doc) for doc in await self._store.find(SESSIONS)]
