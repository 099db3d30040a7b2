"""Durable key-value storage for cache snapshots.

The cache persists itself through a tiny synchronous interface
(``get_item`` / ``set_item`` / ``remove_item``).  :class:`SqliteStorage`
keeps values in a local SQLite file; :class:`MemoryStorage` keeps them in a
dict and can emulate a byte quota.  Both raise :class:`StorageError` on
failure; callers decide whether that matters.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol


_DB_INIT_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class StorageError(Exception):
    """Raised when the storage layer cannot complete an operation."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the configured quota."""


class Storage(Protocol):
    """Synchronous string key-value store."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage, optionally limited to *quota_bytes* per value."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None and len(value.encode()) > self.quota_bytes:
            raise StorageQuotaExceeded(
                f"Value for {key!r} exceeds quota of {self.quota_bytes} bytes"
            )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items


class SqliteStorage:
    """SQLite-backed storage.  Thread-safe via per-thread connections."""

    def __init__(self, db_path: str | Path = "wbprop.db") -> None:
        self._db_path = str(db_path)
        self._is_memory = self._db_path in (":memory:", "")
        self._lock = threading.Lock()

        if self._is_memory:
            # For in-memory databases, use a single shared connection
            # (thread-safety via the lock).
            self._shared_conn = sqlite3.connect(
                ":memory:", check_same_thread=False,
            )
        else:
            self._shared_conn = None

        self._local = threading.local()
        try:
            with self._lock:
                self._conn.executescript(_DB_INIT_SQL)
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot initialise {self._db_path}: {exc}") from exc

    # -- connection management ------------------------------------------

    @property
    def _conn(self) -> sqlite3.Connection:
        """Return the shared connection for :memory:, else a per-thread one."""
        if self._shared_conn is not None:
            return self._shared_conn

        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(
                self._db_path, check_same_thread=False,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn = conn
        return conn

    def close(self) -> None:
        if self._shared_conn is not None:
            # Closing the shared in-memory connection would drop all data.
            return
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    # -- key-value operations -------------------------------------------

    def get_item(self, key: str) -> str | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return None if row is None else row[0]

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value=excluded.value,
                        updated_at=excluded.updated_at
                    """,
                    (key, value, now),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "DELETE FROM kv_store WHERE key = ?", (key,),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
