"""
Form configuration storage: key-value store as the fast path, relational store
as the source of truth.

The two stores are written independently. A failure in one never rolls back
the other, and a store that is not configured is simply skipped.
"""

import json
import logging
from typing import Any

from .api_models import FormConfig
from .bindings import Bindings, epoch_millis, iso_timestamp
from .exceptions import NotFoundError, StoreOperationError

logger = logging.getLogger(__name__)

FORM_KEY_PREFIX = "form:"
DEFAULT_FORM_ID = "default"


def default_form_config() -> dict[str, Any]:
    return {
        "id": DEFAULT_FORM_ID,
        "title": "Sample Form",
        "description": "This is a sample form",
        "theme": {
            "primaryColor": "#6366f1",
            "accentColor": "#8b5cf6",
            "backgroundColor": "#0f172a",
        },
        "fields": [
            {"id": "name", "type": "text", "label": "Full Name", "required": True},
            {"id": "email", "type": "email", "label": "Email Address", "required": True},
        ],
        "calculation": {"enabled": False},
        "payment": {"enabled": False},
        "conditionalLogic": [],
    }


def form_key(form_id: str) -> str:
    return f"{FORM_KEY_PREFIX}{form_id}"


class FormConfigManager:
    def __init__(self, bindings: Bindings) -> None:
        self.bindings = bindings

    @property
    def has_store(self) -> bool:
        return self.bindings.kv is not None or self.bindings.db is not None

    async def _lookup(self, form_id: str) -> dict[str, Any] | None:
        config = None
        if self.bindings.kv is not None:
            config = await self.bindings.kv.get_json(form_key(form_id))
        if not config and self.bindings.db is not None:
            row = await self.bindings.db.fetch_one(
                "SELECT config FROM form_configs WHERE id = ? AND active = 1",
                [form_id],
            )
            if row:
                config = json.loads(row["config"])
        return config or None

    async def get_form(self, form_id: str) -> dict[str, Any]:
        """Resolve a form, falling back to the built-in sample form.

        The sample form is served for ``"default"`` and whenever no store is
        configured. Store read errors are reported as not found.
        """
        try:
            config = await self._lookup(form_id)
        except Exception as e:
            logger.warning("Form lookup failed for %s: %s: %s", form_id, type(e).__name__, e)
            raise NotFoundError("Form not found") from e

        if config is not None:
            return config
        if form_id == DEFAULT_FORM_ID or not self.has_store:
            return default_form_config()
        raise NotFoundError("Form not found")

    async def list_forms(self) -> list[dict[str, Any]]:
        try:
            if self.bindings.db is not None:
                rows = await self.bindings.db.fetch_all(
                    "SELECT id, name, config, active, created_at, updated_at "
                    "FROM form_configs ORDER BY active DESC, created_at DESC"
                )
                return [
                    {
                        **json.loads(row["config"]),
                        "active": row["active"] == 1,
                        "createdAt": row["created_at"],
                        "updatedAt": row["updated_at"],
                    }
                    for row in rows
                ]

            forms: list[dict[str, Any]] = []
            if self.bindings.kv is not None:
                for key in await self.bindings.kv.list_keys(FORM_KEY_PREFIX):
                    config = await self.bindings.kv.get_json(key)
                    if config:
                        forms.append(config)
            return forms
        except Exception as e:
            logger.exception("Get forms error")
            raise StoreOperationError("Failed to retrieve forms") from e

    async def save_form(self, config: FormConfig) -> str:
        """Insert or replace a form. ``createdAt`` is always reset to now."""
        moment = self.bindings.now()
        now = iso_timestamp(moment)
        payload = config.to_payload()
        form_id = payload.get("id") or f"form_{epoch_millis(moment)}"
        payload["id"] = form_id
        payload["createdAt"] = now
        payload["updatedAt"] = now

        try:
            if self.bindings.kv is not None:
                await self.bindings.kv.put(form_key(form_id), json.dumps(payload))
            if self.bindings.db is not None:
                await self.bindings.db.execute(
                    "INSERT OR REPLACE INTO form_configs "
                    "(id, name, config, active, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    [form_id, payload.get("title"), json.dumps(payload), 1, now, now],
                )
        except Exception as e:
            logger.exception("Save form error")
            raise StoreOperationError("Failed to save form") from e

        logger.info("Saved form %s", form_id)
        return form_id

    async def _stored_created_at(self, form_id: str) -> str | None:
        if self.bindings.db is not None:
            row = await self.bindings.db.fetch_one(
                "SELECT created_at FROM form_configs WHERE id = ?", [form_id]
            )
            if row and row["created_at"]:
                return row["created_at"]
        if self.bindings.kv is not None:
            stored = await self.bindings.kv.get_json(form_key(form_id))
            if stored:
                return stored.get("createdAt")
        return None

    async def update_form(self, config: FormConfig) -> None:
        payload = config.to_payload()
        form_id = payload.get("id")
        if not form_id:
            logger.warning("Update form called without an id")
            raise StoreOperationError("Failed to update form")
        payload["updatedAt"] = iso_timestamp(self.bindings.now())

        try:
            created_at = await self._stored_created_at(form_id)
            if created_at:
                payload["createdAt"] = created_at
            if self.bindings.kv is not None:
                await self.bindings.kv.put(form_key(form_id), json.dumps(payload))
            if self.bindings.db is not None:
                await self.bindings.db.execute(
                    "UPDATE form_configs SET name = ?, config = ?, updated_at = ? WHERE id = ?",
                    [payload.get("title"), json.dumps(payload), payload["updatedAt"], form_id],
                )
        except Exception as e:
            logger.exception("Update form error")
            raise StoreOperationError("Failed to update form") from e

        logger.info("Updated form %s", form_id)

    async def delete_form(self, form_id: str) -> None:
        """Hard delete from the key-value store, soft delete in the relational store."""
        try:
            if self.bindings.kv is not None:
                await self.bindings.kv.delete(form_key(form_id))
            if self.bindings.db is not None:
                await self.bindings.db.execute(
                    "UPDATE form_configs SET active = 0 WHERE id = ?", [form_id]
                )
        except Exception as e:
            logger.exception("Delete form error")
            raise StoreOperationError("Failed to delete form") from e

        logger.info("Deleted form %s", form_id)
