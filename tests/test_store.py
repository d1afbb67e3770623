"""Tests for the document store backends and factory."""

from __future__ import annotations

import pytest

from config.settings import Settings
from echoaid.services.store import (
    SESSIONS,
    InMemoryDocumentStore,
    RedisDocumentStore,
    _matches,
    create_store,
)


# -----------------------------------------------------------------------
# InMemoryDocumentStore
# -----------------------------------------------------------------------


class TestInMemoryDocumentStore:
    async def test_insert_and_get(self, store: InMemoryDocumentStore) -> None:
        await store.insert(SESSIONS, "s1", {"session_id": "s1", "language": "hi"})
        doc = await store.get(SESSIONS, "s1")
        assert doc == {"session_id": "s1", "language": "hi"}

    async def test_get_missing_returns_none(self, store: InMemoryDocumentStore) -> None:
        assert await store.get(SESSIONS, "nope") is None
        assert await store.get("unknown_table", "nope") is None

    async def test_find_keeps_insertion_order(self, store: InMemoryDocumentStore) -> None:
        for doc_id in ("c", "a", "b"):
            await store.insert("t", doc_id, {"id": doc_id, "kind": "x"})
        docs = await store.find("t", kind="x")
        assert [d["id"] for d in docs] == ["c", "a", "b"], "find must return rows in insertion order"

    async def test_find_filters_on_equality(self, store: InMemoryDocumentStore) -> None:
        await store.insert("t", "1", {"phone": "111", "active": True})
        await store.insert("t", "2", {"phone": "222", "active": True})
        await store.insert("t", "3", {"phone": "111", "active": False})
        docs = await store.find("t", phone="111", active=True)
        assert [d["phone"] for d in docs] == ["111"]
        assert len(docs) == 1

    async def test_find_with_dotted_key(self, store: InMemoryDocumentStore) -> None:
        await store.insert("t", "1", {"location": {"state": "Delhi"}})
        await store.insert("t", "2", {"location": {"state": "Goa"}})
        docs = await store.find("t", **{"location.state": "Goa"})
        assert len(docs) == 1
        assert docs[0]["location"]["state"] == "Goa"

    async def test_patch_updates_fields_in_place(self, store: InMemoryDocumentStore) -> None:
        await store.insert("t", "1", {"status": "attempting", "n": 1})
        await store.insert("t", "2", {"status": "attempting", "n": 2})
        updated = await store.patch("t", "1", {"status": "connected"})
        assert updated == {"status": "connected", "n": 1}
        docs = await store.find("t")
        assert [d["n"] for d in docs] == [1, 2], "patch must not move the row"

    async def test_patch_missing_returns_none(self, store: InMemoryDocumentStore) -> None:
        assert await store.patch("t", "missing", {"x": 1}) is None

    async def test_returned_docs_are_copies(self, store: InMemoryDocumentStore) -> None:
        await store.insert("t", "1", {"tags": ["a"]})
        doc = await store.get("t", "1")
        doc["tags"].append("b")
        assert (await store.get("t", "1"))["tags"] == ["a"], "mutating a returned doc must not change the store"

    async def test_insert_same_id_overwrites(self, store: InMemoryDocumentStore) -> None:
        await store.insert("t", "1", {"v": 1})
        await store.insert("t", "1", {"v": 2})
        assert store.count("t") == 1
        assert (await store.get("t", "1"))["v"] == 2

    async def test_ping(self, store: InMemoryDocumentStore) -> None:
        assert await store.ping() is True


class TestMatches:
    def test_missing_nested_key_does_not_match(self) -> None:
        assert _matches({"location": None}, {"location.state": "Delhi"}) is False

    def test_empty_filter_matches_everything(self) -> None:
        assert _matches({"a": 1}, {}) is True


# -----------------------------------------------------------------------
# Factory
# -----------------------------------------------------------------------


class TestCreateStore:
    async def test_memory_backend_by_default(self) -> None:
        store = await create_store(Settings(store_backend="memory"))
        assert isinstance(store, InMemoryDocumentStore)

    async def test_unreachable_redis_falls_back_to_memory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def _down(self) -> bool:
            return False

        monkeypatch.setattr(RedisDocumentStore, "ping", _down)
        store = await create_store(Settings(store_backend="redis"))
        assert isinstance(store, InMemoryDocumentStore), "an unreachable Redis must degrade to memory"
