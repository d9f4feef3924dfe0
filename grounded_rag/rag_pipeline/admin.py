"""Collection housekeeping: readiness, counting, clearing, inspecting, deleting.

All operations are best effort.  Store failures are logged and reported
as ``False``, ``0`` or an empty list rather than raised.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, List

from .config import StoreSettings
from .models import (
    PAYLOAD_CHUNK_INDEX,
    PAYLOAD_CONTENT,
    PAYLOAD_SOURCE,
    UNKNOWN_SOURCE,
    StoredChunkInfo,
)
from .vector_store import COSINE, VectorStore

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 150


def content_preview(content: str, length: int = PREVIEW_LENGTH) -> str:
    if len(content) > length:
        return content[:length] + "..."
    return content


def is_valid_record_id(value: str) -> bool:
    """Record ids are UUID strings; anything else is rejected."""
    try:
        uuid.UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError):
        return False
    return True


class StoreAdmin:
    def __init__(self, settings: StoreSettings, store: VectorStore) -> None:
        self.settings = settings
        self.store = store

    @property
    def collection_name(self) -> str:
        return self.settings.collection_name

    def ensure_collection_exists(self) -> bool:
        """Create the collection if it is missing.

        Returns ``True`` when the collection is ready to use.
        """
        name = self.collection_name
        try:
            if name in self.store.list_collections():
                logger.info("Collection already exists: %s", name)
            else:
                self.store.create_collection(name, self.settings.vector_size, COSINE)
                logger.info("Created collection: %s (dimension %d)", name, self.settings.vector_size)
            return True
        except Exception:
            logger.exception("Failed to ensure collection %s exists", name)
            return False

    def document_count(self) -> int:
        try:
            return int(self.store.collection_info(self.collection_name).point_count)
        except Exception as exc:
            logger.debug("Could not count points in %s: %s", self.collection_name, exc)
            return 0

    def clear_collection(self) -> bool:
        """Drop every record by deleting and recreating the collection."""
        name = self.collection_name
        try:
            logger.warning("Clearing collection: %s", name)
            self.store.delete_collection(name)
            self.store.create_collection(name, self.settings.vector_size, COSINE)
            logger.info("Collection %s cleared and recreated", name)
            return True
        except Exception:
            logger.exception("Failed to clear collection %s", name)
            return False

    def list_chunks(self, limit: int = 500) -> List[StoredChunkInfo]:
        chunks: List[StoredChunkInfo] = []
        try:
            records = self.store.scroll(self.collection_name, limit)
        except Exception:
            logger.exception("Failed to list stored chunks")
            return chunks
        for record in records:
            payload = record.payload or {}
            content = payload.get(PAYLOAD_CONTENT) or ""
            try:
                chunk_index = int(payload.get(PAYLOAD_CHUNK_INDEX, 0))
            except (TypeError, ValueError):
                chunk_index = 0
            chunks.append(
                StoredChunkInfo(
                    id=str(record.id),
                    source_document=payload.get(PAYLOAD_SOURCE) or UNKNOWN_SOURCE,
                    content_preview=content_preview(str(content)),
                    chunk_index=chunk_index,
                )
            )
        return chunks

    def delete_chunks(self, ids: Iterable[str]) -> int:
        """Submit a bulk delete and return how many ids were submitted.

        Only ids that parse as UUIDs are sent.  The return value is the
        number submitted, not necessarily the number removed.
        """
        valid_ids = [str(value).strip() for value in ids if is_valid_record_id(value)]
        if not valid_ids:
            return 0
        try:
            logger.info("Deleting %d chunk(s) from %s", len(valid_ids), self.collection_name)
            self.store.delete(self.collection_name, valid_ids)
        except Exception:
            logger.exception("Failed to delete chunks")
            return 0
        return len(valid_ids)
