"""Key-value store abstraction for workspace memory and OAuth tokens."""

import asyncio
import logging
import sqlite3
from typing import Protocol

from src.config import Config
from src.memory.schema import init_store_db
from src.shared import utc_now_iso

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Opaque string store; every call is an async I/O boundary."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store for tests and local experiments."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def put(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteKeyValueStore:
    """
    SQLite-backed store. Each call opens its own connection on a worker thread
    so the event loop never blocks on disk I/O.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._initialized = False

    def _ensure_schema(self) -> None:
        if not self._initialized:
            init_store_db(self.db_path)
            self._initialized = True

    def _get_sync(self, key: str) -> str | None:
        self._ensure_schema()
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv_entries WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def _put_sync(self, key: str, value: str) -> None:
        self._ensure_schema()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, utc_now_iso()),
            )

    def _delete_sync(self, key: str) -> None:
        self._ensure_schema()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def put(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._put_sync, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)


def build_store() -> SqliteKeyValueStore:
    """Return the configured SQLite key-value store."""
    db_path = Config.get_store_db_path()
    logger.debug("Using SQLite key-value store at %s", db_path)
    return SqliteKeyValueStore(db_path)
