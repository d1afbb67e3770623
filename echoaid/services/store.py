"""Document store used for every EchoAid table.

Records are plain JSON-compatible dicts keyed by a document id inside a
named table.  Two backends share the :class:`DocumentStore` protocol:

* :class:`InMemoryDocumentStore` -- ordered dicts behind an asyncio lock,
  used in development and tests.
* :class:`RedisDocumentStore` -- one Redis hash per table plus a list
  recording insertion order, values encoded with *orjson*.

``find`` always returns documents in insertion order so that "newest
row" and "top N" queries are deterministic on both backends.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import orjson
import structlog

if TYPE_CHECKING:
    from config.settings import Settings

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Table names
# ---------------------------------------------------------------------------

SESSIONS = "voiceSessions"
INTERACTIONS = "voiceInteractions"
SCHEMES = "welfareSchemes"
PROVIDERS = "serviceProviders"
EMERGENCY_CONTACTS = "emergencyContacts"
CALL_LOGS = "callLogs"
ANALYTICS = "analytics"
AUDIO = "voiceAudio"


def _matches(doc: dict[str, Any], equals: dict[str, Any]) -> bool:
    for key, expected in equals.items():
        value: Any = doc
        # Dotted keys reach into embedded objects, e.g. "location.state".
        for part in key.split("."):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(part)
        if value != expected:
            return False
    return True


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentStore(Protocol):
    """Async document store interface."""

    async def insert(self, table: str, doc_id: str, doc: dict[str, Any]) -> None: ...

    async def get(self, table: str, doc_id: str) -> dict[str, Any] | None: ...

    async def find(self, table: str, **equals: Any) -> list[dict[str, Any]]: ...

    async def patch(self, table: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any] | None: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryDocumentStore:
    """Process-local store; every table is an ``OrderedDict``.

    Documents are round-tripped through orjson on write so callers can
    never mutate stored state by holding on to a returned dict.
    """

    __slots__ = ("_lock", "_tables")

    def __init__(self) -> None:
        self._tables: dict[str, OrderedDict[str, bytes]] = {}
        self._lock = asyncio.Lock()

    async def insert(self, table: str, doc_id: str, doc: dict[str, Any]) -> None:
        async with self._lock:
            rows = self._tables.setdefault(table, OrderedDict())
            rows[doc_id] = orjson.dumps(doc)

    async def get(self, table: str, doc_id: str) -> dict[str, Any] | None:
        async with self._lock:
            raw = self._tables.get(table, {}).get(doc_id)
        return orjson.loads(raw) if raw is not None else None

    async def find(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        async with self._lock:
            rows = list(self._tables.get(table, {}).values())
        docs = [orjson.loads(raw) for raw in rows]
        return [doc for doc in docs if _matches(doc, equals)]

    async def patch(self, table: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        async with self._lock:
            rows = self._tables.get(table)
            if rows is None or doc_id not in rows:
                return None
            doc = orjson.loads(rows[doc_id])
            doc.update(fields)
            # Replacing the value keeps the key's insertion position.
            rows[doc_id] = orjson.dumps(doc)
            return doc

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def count(self, table: str) -> int:
        return len(self._tables.get(table, {}))


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisDocumentStore:
    """Redis-backed store using ``redis.asyncio`` with connection pooling."""

    __slots__ = ("_namespace", "_pool", "_redis")

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        namespace: str = "echoaid:",
        max_connections: int = 20,
    ) -> None:
        import redis.asyncio as aioredis

        self._namespace = namespace
        self._pool = aioredis.ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=False,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    def _table_key(self, table: str) -> str:
        return f"{self._namespace}{table}"

    def _order_key(self, table: str) -> str:
        return f"{self._namespace}{table}:order"

    async def insert(self, table: str, doc_id: str, doc: dict[str, Any]) -> None:
        created = await self._redis.hset(self._table_key(table), doc_id, orjson.dumps(doc))
        if created:
            await self._redis.rpush(self._order_key(table), doc_id)

    async def get(self, table: str, doc_id: str) -> dict[str, Any] | None:
        raw = await self._redis.hget(self._table_key(table), doc_id)
        return orjson.loads(raw) if raw is not None else None

    async def find(self, table: str, **equals: Any) -> list[dict[str, Any]]:
        ids = await self._redis.lrange(self._order_key(table), 0, -1)
        if not ids:
            return []
        raws = await self._redis.hmget(self._table_key(table), ids)
        docs = [orjson.loads(raw) for raw in raws if raw is not None]
        return [doc for doc in docs if _matches(doc, equals)]

    async def patch(self, table: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        key = self._table_key(table)
        raw = await self._redis.hget(key, doc_id)
        if raw is None:
            return None
        doc = orjson.loads(raw)
        doc.update(fields)
        await self._redis.hset(key, doc_id, orjson.dumps(doc))
        return doc

    async def ping(self) -> bool:
        """Return *True* if the Redis server is reachable."""
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()
        await self._pool.aclose()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


async def create_store(settings: Settings) -> DocumentStore:
    """Build the configured backend, degrading to memory if Redis is down."""
    if settings.store_backend == "redis":
        try:
            store = RedisDocumentStore(settings.redis_url, namespace=settings.store_namespace)
        except Exception:
            logger.warning("store.redis_init_failed", redis_url=settings.redis_url, exc_info=True)
        else:
            if await store.ping():
                logger.info("store.redis_connected")
                return store
            logger.warning("store.redis_unavailable_using_inmemory")
            with contextlib.suppress(Exception):
                await store.close()

    return InMemoryDocumentStore()
