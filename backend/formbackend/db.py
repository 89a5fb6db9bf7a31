"""
SQLite access helpers for the relational store.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS form_configs (
        id TEXT PRIMARY KEY,
        name TEXT,
        config TEXT NOT NULL,
        active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT,
        updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS submissions (
        id TEXT PRIMARY KEY,
        email TEXT,
        data TEXT NOT NULL,
        payment_ref TEXT,
        amount REAL,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
)


class Database:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._schema_ready = False

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(self.path) as db:
            db.row_factory = aiosqlite.Row
            if not self._schema_ready:
                for statement in SCHEMA:
                    await db.execute(statement)
                await db.commit()
                self._schema_ready = True
            yield db

    async def fetch_one(
        self, query: str, params: Iterable[Any] | None = None
    ) -> dict[str, Any] | None:
        async with self._connect() as db:
            cursor = await db.execute(query, tuple(params or []))
            row = await cursor.fetchone()
            if row is None:
                return None
            return dict(row)

    async def fetch_all(
        self, query: str, params: Iterable[Any] | None = None
    ) -> list[dict[str, Any]]:
        async with self._connect() as db:
            cursor = await db.execute(query, tuple(params or []))
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def execute(self, query: str, params: Iterable[Any] | None = None) -> int:
        """Run a write statement and commit it. Returns the affected row count."""
        async with self._connect() as db:
            cursor = await db.execute(query, tuple(params or []))
            await db.commit()
            return cursor.rowcount
