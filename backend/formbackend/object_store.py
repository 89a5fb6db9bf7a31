"""
Object store for uploaded files, backed by a local directory.
"""

import asyncio
import json
from pathlib import Path
from typing import Protocol


class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None: ...


class LocalObjectStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, key: str) -> Path:
        root = self.root.resolve()
        target = (root / key).resolve()
        if target == root or not target.is_relative_to(root):
            raise ValueError(f"Invalid object key: {key!r}")
        return target

    def _write(self, key: str, data: bytes, content_type: str | None) -> None:
        target = self._resolve(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        meta = target.with_name(target.name + ".meta.json")
        meta.write_text(json.dumps({"contentType": content_type}), encoding="utf-8")

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        await asyncio.to_thread(self._write, key, data, content_type)
