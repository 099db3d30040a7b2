"""Query result cache with TTL expiry, bounded size and durable persistence.

Entries are keyed by :func:`make_key` and scoped to the instance they were
fetched from.  The whole store is written to a single storage slot as a
JSON list of ``[key, entry]`` pairs after every mutation and reloaded at
construction time.  Storage problems never reach the caller: the
in-memory store stays authoritative.
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from wbprop.storage import MemoryStorage, Storage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000
DEFAULT_MAX_ENTRIES = 100
DEFAULT_STORAGE_KEY = "wbprop-query-cache"

_WHITESPACE = re.compile(r"\s+")


class CacheEntry(BaseModel):
    """One cached query result."""

    payload: Any
    inserted_at: int  # epoch milliseconds
    instance_id: str


class CacheStats(BaseModel):
    """Read-only cache introspection."""

    entries: int
    max_entries: int
    ttl_ms: int


_SNAPSHOT = TypeAdapter(list[tuple[str, CacheEntry]])


def make_key(instance_id: str, query: str) -> str:
    """Build a cache key from *instance_id* and whitespace-normalised *query*."""
    normalized = _WHITESPACE.sub(" ", query).strip()
    return f"{instance_id}:{normalized}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class QueryCache:
    """Bounded TTL cache for SPARQL results, persisted through a :class:`Storage`."""

    def __init__(
        self,
        storage: Storage | None = None,
        *,
        ttl_ms: int = DEFAULT_TTL_MS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._storage = storage if storage is not None else MemoryStorage()
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self.storage_key = storage_key
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._load()

    make_key = staticmethod(make_key)

    def get(self, key: str) -> Any | None:
        """Return the cached payload, or ``None`` if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry):
            logger.debug("Cache entry expired: %s", key)
            del self._entries[key]
            self.persist()
            return None

        return entry.payload

    def set(self, key: str, payload: Any, instance_id: str) -> None:
        """Store *payload* under *key*.

        Overwriting an existing key keeps its original insertion time and
        does not trigger eviction.
        """
        existing = self._entries.get(key)
        if existing is not None:
            self._entries[key] = existing.model_copy(
                update={"payload": payload, "instance_id": instance_id},
            )
        else:
            if len(self._entries) >= self.max_entries:
                self._evict_oldest()
            self._entries[key] = CacheEntry(
                payload=payload,
                inserted_at=self._clock(),
                instance_id=instance_id,
            )

        self.persist()

    def invalidate_instance(self, instance_id: str) -> None:
        """Remove all entries belonging to *instance_id*."""
        stale = [
            key for key, entry in self._entries.items()
            if entry.instance_id == instance_id
        ]
        for key in stale:
            del self._entries[key]
        logger.debug("Invalidated %d entries for %s", len(stale), instance_id)
        self.persist()

    def clear(self) -> None:
        """Drop every entry and the persisted snapshot."""
        self._entries.clear()
        try:
            self._storage.remove_item(self.storage_key)
        except StorageError as exc:
            logger.warning("Could not remove cache snapshot: %s", exc)

    def get_stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            max_entries=self.max_entries,
            ttl_ms=self.ttl_ms,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def entries(self) -> dict[str, CacheEntry]:
        """Shallow copy of the current entries, expired ones included."""
        return dict(self._entries)

    # -- persistence ----------------------------------------------------

    def persist(self) -> bool:
        """Write the full snapshot.  Returns ``False`` if storage failed."""
        snapshot = [
            [key, entry.model_dump()] for key, entry in self._entries.items()
        ]
        try:
            self._storage.set_item(self.storage_key, json.dumps(snapshot))
        except (StorageError, TypeError, ValueError) as exc:
            logger.warning("Cache snapshot not persisted: %s", exc)
            return False
        return True

    def _load(self) -> None:
        try:
            raw = self._storage.get_item(self.storage_key)
            if not raw:
                return
            pairs = _SNAPSHOT.validate_json(raw)
        except (StorageError, ValidationError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache snapshot: %s", exc)
            self._entries.clear()
            try:
                self._storage.remove_item(self.storage_key)
            except StorageError as remove_exc:
                logger.warning("Could not remove cache snapshot: %s", remove_exc)
            return

        for key, entry in pairs:
            if not self._is_expired(entry):
                self._entries[key] = entry
        logger.debug(
            "Loaded %d of %d cached entries", len(self._entries), len(pairs),
        )

        # The snapshot may predate a lower max_entries
        if len(self._entries) > self.max_entries:
            while len(self._entries) > self.max_entries:
                self._evict_oldest()
            self.persist()

    # -- helpers --------------------------------------------------------

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at > self.ttl_ms

    def _evict_oldest(self) -> None:
        oldest_key = min(
            self._entries, key=lambda k: self._entries[k].inserted_at,
        )
        logger.debug("Evicting oldest cache entry: %s", oldest_key)
        del self._entries[oldest_key]
