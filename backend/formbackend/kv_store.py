"""
Key-value store with per-key expiration, backed by SQLite.
"""

import json
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Protocol

import aiosqlite


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def get_json(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: str, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list_keys(self, prefix: str = "") -> list[str]: ...


class SqliteKeyValueStore:
    """Entries past their ``expires_at`` are invisible to every read and listing."""

    def __init__(self, path: Path, clock: Callable[[], float] = time.time) -> None:
        self.path = Path(path)
        self._clock = clock
        self._schema_ready = False

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(self.path) as db:
            if not self._schema_ready:
                await db.execute(
                    "CREATE TABLE IF NOT EXISTS kv_entries ("
                    "key TEXT PRIMARY KEY, value TEXT NOT NULL, expires_at REAL)"
                )
                await db.commit()
                self._schema_ready = True
            yield db

    async def get(self, key: str) -> str | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT value FROM kv_entries "
                "WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
                (key, self._clock()),
            )
            row = await cursor.fetchone()
            return None if row is None else row[0]

    async def get_json(self, key: str) -> Any | None:
        value = await self.get(key)
        if value is None:
            return None
        return json.loads(value)

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        async with self._connect() as db:
            await db.execute(
                "INSERT OR REPLACE INTO kv_entries (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, expires_at),
            )
            await db.commit()

    async def delete(self, key: str) -> None:
        async with self._connect() as db:
            await db.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            await db.commit()

    async def list_keys(self, prefix: str = "") -> list[str]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT key FROM kv_entries "
                "WHERE substr(key, 1, ?) = ? AND (expires_at IS NULL OR expires_at > ?) "
                "ORDER BY key",
                (len(prefix), prefix, self._clock()),
            )
            rows = await cursor.fetchall()
            return [row[0] for row in rows]
