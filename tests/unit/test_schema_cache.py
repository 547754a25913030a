"""Unit tests for the schema cache and its backends."""

import asyncio
from typing import Any

import pytest

from schemarpc.core.errors import SchemaLoadError
from schemarpc.schema.cache import MemoryCache, NullCache, SchemaCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingStore:
    """Schema store that counts loads."""

    def __init__(self, schemas: dict[str, dict[str, Any]]) -> None:
        self.schemas = schemas
        self.loads: list[str] = []

    def load_schema(self, method: str) -> dict[str, Any] | None:
        self.loads.append(method)
        return self.schemas.get(method)


class FailingStore:
    def load_schema(self, method: str) -> dict[str, Any] | None:
        raise SchemaLoadError(method, "corrupt")


class TestMemoryCache:
    """Tests for MemoryCache expiry."""

    def test_get_before_and_after_expiry(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("k", {"v": 1}, ttl=10)
        assert cache.get("k") == {"v": 1}
        clock.now += 9
        assert cache.get("k") == {"v": 1}
        clock.now += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_replaces_entry(self):
        cache = MemoryCache()
        cache.set("k", 1, ttl=10)
        cache.set("k", 2, ttl=10)
        assert cache.get("k") == 2

    def test_delete_and_clear(self):
        cache = MemoryCache()
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=10)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
        cache.clear()
        assert cache.get("b") is None


class TestNullCache:
    def test_never_stores(self):
        cache = NullCache()
        cache.set("k", 1, ttl=10)
        assert cache.get("k") is None


class TestSchemaCache:
    """Tests for SchemaCache read-through behaviour."""

    @pytest.mark.asyncio
    async def test_hit_does_not_reload(self):
        """Repeated gets within the TTL read the store once."""
        store = CountingStore({"a": {"type": "object"}})
        cache = SchemaCache(store, MemoryCache(), project="p", ttl=60)

        first = await cache.get("a")
        second = await cache.get("a")

        assert first == second == {"type": "object"}
        assert store.loads == ["a"]

    @pytest.mark.asyncio
    async def test_reload_after_ttl(self):
        """After expiry the next get reloads from the store."""
        clock = FakeClock()
        store = CountingStore({"a": {"type": "object"}})
        cache = SchemaCache(store, MemoryCache(clock=clock), ttl=60)

        await cache.get("a")
        clock.now += 61
        await cache.get("a")

        assert store.loads == ["a", "a"]

    @pytest.mark.asyncio
    async def test_disabled_cache_always_loads(self):
        store = CountingStore({"a": {"type": "object"}})
        cache = SchemaCache(store, NullCache())

        for _ in range(3):
            assert await cache.get("a") == {"type": "object"}

        assert store.loads == ["a", "a", "a"]

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self):
        """A missing schema is looked up again next time."""
        store = CountingStore({})
        cache = SchemaCache(store, MemoryCache())

        assert await cache.get("x") is None
        store.schemas["x"] = {"type": "object"}
        assert await cache.get("x") == {"type": "object"}

    @pytest.mark.asyncio
    async def test_key_includes_project(self):
        backend = MemoryCache()
        store = CountingStore({"a": {"type": "object"}})
        await SchemaCache(store, backend, project="one").get("a")
        await SchemaCache(store, backend, project="two").get("a")

        assert store.loads == ["a", "a"]
        assert backend.get("one:a") == {"type": "object"}
        assert backend.get("two:a") == {"type": "object"}

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self):
        store = CountingStore({"a": {"type": "object"}})
        cache = SchemaCache(store, MemoryCache())

        await cache.get("a")
        cache.invalidate("a")
        await cache.get("a")
        cache.clear()
        await cache.get("a")

        assert store.loads == ["a", "a", "a"]

    @pytest.mark.asyncio
    async def test_load_error_propagates(self):
        cache = SchemaCache(FailingStore(), MemoryCache())
        with pytest.raises(SchemaLoadError):
            await cache.get("a")

    @pytest.mark.asyncio
    async def test_concurrent_misses_tolerated(self):
        """Concurrent misses may load twice but all callers get the schema."""
        store = CountingStore({"a": {"type": "object"}})
        cache = SchemaCache(store, MemoryCache())

        results = await asyncio.gather(*(cache.get("a") for _ in range(5)))

        assert all(r == {"type": "object"} for r in results)
        assert 1 <= len(store.loads) <= 5
        assert await cache.get("a") == {"type": "object"}
