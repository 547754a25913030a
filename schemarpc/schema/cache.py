"""Read-through schema cache with pluggable backends.

The cache sits in front of a SchemaStore and is keyed by ``(project, method)``.
Schema documents are immutable for the life of a deployment, so a concurrent
miss on the same key may load the document twice; the last write wins and no
lock is taken.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from schemarpc.schema.store import SchemaStore

logger = logging.getLogger(__name__)

# One year: effectively "until evicted or invalidated"
DEFAULT_TTL = 365 * 24 * 60 * 60


class CacheBackend(Protocol):
    """Key/value store with per-entry expiry."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the monotonic time it stops being served."""

    value: Any
    expires_at: float


class MemoryCache:
    """In-process cache backend.

    Entries are replaced whole on set, so readers never see a partial write.

    Args:
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            # Only drop the entry we looked at; a fresher one may have replaced it
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullCache:
    """Backend used when caching is disabled: never stores anything."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        pass

    def delete(self, key: str) -> None:
        pass

    def clear(self) -> None:
        pass


class SchemaCache:
    """Read-through cache of method schemas.

    Args:
        store: Where schemas are loaded from on a miss.
        backend: Cache backend. Use NullCache to disable caching.
        project: Namespace prefix for cache keys.
        ttl: Lifetime of a cached schema in seconds.
    """

    def __init__(
        self,
        store: SchemaStore,
        backend: CacheBackend | None = None,
        project: str = "schemarpc",
        ttl: float = DEFAULT_TTL,
    ) -> None:
        self._store = store
        self._backend: CacheBackend = backend if backend is not None else MemoryCache()
        self._project = project
        self._ttl = ttl

    @property
    def store(self) -> SchemaStore:
        return self._store

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def ttl(self) -> float:
        return self._ttl

    def key_for(self, method: str) -> str:
        return f"{self._project}:{method}"

    async def get(self, method: str) -> dict[str, Any] | None:
        """Return the schema for method, loading it on a miss.

        Returns:
            The schema document, or None if the store has none for method.
            Absent schemas are not cached.

        Raises:
            SchemaLoadError: If the store has a document that cannot be used.
        """
        key = self.key_for(method)
        schema = self._backend.get(key)
        if schema is not None:
            logger.debug("Schema cache hit: %s", key)
            return schema

        logger.debug("Schema cache miss: %s", key)
        schema = await asyncio.to_thread(self._store.load_schema, method)
        if schema is not None:
            self._backend.set(key, schema, self._ttl)
        return schema

    def invalidate(self, method: str) -> None:
        """Drop the cached schema for method, if any."""
        self._backend.delete(self.key_for(method))

    def clear(self) -> None:
        """Drop every cached schema."""
        self._backend.clear()
