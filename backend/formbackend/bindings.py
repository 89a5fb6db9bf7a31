"""
Explicit dependency bundle built once at startup and handed to every component.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from .config import Settings
from .db import Database
from .kv_store import KeyValueStore, SqliteKeyValueStore
from .object_store import LocalObjectStore, ObjectStore


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """Format as UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@dataclass
class Bindings:
    settings: Settings
    http: httpx.AsyncClient
    db: Database | None = None
    kv: KeyValueStore | None = None
    bucket: ObjectStore | None = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def now(self) -> datetime:
        return self.clock()


def build_bindings(settings: Settings) -> Bindings:
    return Bindings(
        settings=settings,
        http=httpx.AsyncClient(),
        db=Database(settings.sqlite_path) if settings.sqlite_path else None,
        kv=SqliteKeyValueStore(settings.kv_path) if settings.kv_path else None,
        bucket=LocalObjectStore(settings.uploads_dir) if settings.uploads_dir else None,
    )
