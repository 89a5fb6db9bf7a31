"""
Save-and-resume drafts kept in the key-value store for a fixed retention window.
"""

import json
import logging
from typing import Any
from uuid import uuid4

from .api_models import DraftRecord, SaveDraftRequest
from .bindings import Bindings, iso_timestamp
from .exceptions import NotFoundError, StoreOperationError

logger = logging.getLogger(__name__)

DRAFT_KEY_PREFIX = "draft:"
DRAFT_TTL_SECONDS = 7 * 24 * 60 * 60


def draft_key(draft_id: str) -> str:
    return f"{DRAFT_KEY_PREFIX}{draft_id}"


class DraftManager:
    def __init__(self, bindings: Bindings) -> None:
        self.bindings = bindings

    async def save_draft(self, body: SaveDraftRequest) -> str:
        draft_id = body.draft_id or str(uuid4())
        record = DraftRecord(
            form_id=body.form_id,
            data=body.data,
            saved_at=iso_timestamp(self.bindings.now()),
        )

        if self.bindings.kv is None:
            logger.warning("No key-value store configured; draft %s was not stored", draft_id)
            return draft_id

        try:
            await self.bindings.kv.put(
                draft_key(draft_id),
                json.dumps(record.model_dump(by_alias=True)),
                ttl=DRAFT_TTL_SECONDS,
            )
        except Exception as e:
            logger.exception("Save draft error")
            raise StoreOperationError("Failed to save draft") from e
        return draft_id

    async def get_draft(self, draft_id: str | None) -> dict[str, Any]:
        if self.bindings.kv is None or not draft_id:
            raise NotFoundError("Draft not found")

        try:
            draft = await self.bindings.kv.get_json(draft_key(draft_id))
        except Exception as e:
            logger.exception("Get draft error")
            raise StoreOperationError("Failed to retrieve draft") from e

        if not draft:
            raise NotFoundError("Draft not found")
        return draft
