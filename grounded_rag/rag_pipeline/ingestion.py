"""
ingestion.py
------------

Document ingestion: chunk, embed in one batch, upsert in one batch.

:meth:`IngestionPipeline.ingest` never raises.  Every outcome, including
input too short to produce a chunk and failures of the embedding service
or the store, is reported through an
:class:`~rag_pipeline.models.IngestResult`.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from .admin import StoreAdmin
from .chunking import TextChunker
from .config import RAGConfig
from .embedding import EmbeddingService
from .exceptions import DimensionMismatchError, EmbeddingError, error_stage
from .models import (
    PAYLOAD_CHUNK_INDEX,
    PAYLOAD_CONTENT,
    PAYLOAD_CREATED_AT,
    PAYLOAD_SOURCE,
    Chunk,
    IngestResult,
    StoredVectorRecord,
)
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

NO_CHUNKS_MESSAGE = "No valid chunks could be created from the document"


def build_records(
    chunks: Sequence[Chunk],
    embeddings: Sequence[Sequence[float]],
    dimension: int,
) -> List[StoredVectorRecord]:
    """Pair each chunk with its embedding and a fresh UUID.

    Raises
    ------
    EmbeddingError
        If the number of vectors differs from the number of chunks.
    DimensionMismatchError
        If any vector's length differs from ``dimension``.
    """
    if len(embeddings) != len(chunks):
        raise EmbeddingError(
            f"Expected {len(chunks)} embeddings but received {len(embeddings)}"
        )
    created_at = datetime.now(timezone.utc).isoformat()
    records: List[StoredVectorRecord] = []
    for chunk, vector in zip(chunks, embeddings):
        if len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))
        records.append(
            StoredVectorRecord(
                id=str(uuid.uuid4()),
                vector=[float(x) for x in vector],
                payload={
                    PAYLOAD_CONTENT: chunk.content,
                    PAYLOAD_SOURCE: chunk.source_document,
                    PAYLOAD_CHUNK_INDEX: chunk.index,
                    PAYLOAD_CREATED_AT: created_at,
                },
            )
        )
    return records


class IngestionPipeline:
    def __init__(
        self,
        config: RAGConfig,
        embedder: EmbeddingService,
        store: VectorStore,
        *,
        admin: Optional[StoreAdmin] = None,
        chunker: Optional[TextChunker] = None,
    ) -> None:
        self.config = config
        self.embedder = embedder
        self.store = store
        self.admin = admin or StoreAdmin(config.store, store)
        self.chunker = chunker or TextChunker.from_settings(config.chunking)

    def ingest(self, content: str, document_name: str) -> IngestResult:
        """Chunk, embed and store one document.

        Parameters
        ----------
        content : str
            The document's plain text.
        document_name : str
            Recorded as ``sourceDocument`` on every chunk.
        """
        try:
            logger.info("Starting ingestion of document: %s", document_name)
            self.admin.ensure_collection_exists()

            chunks = self.chunker.chunk_document(content or "", document_name)
            logger.info("Created %d chunks from %s", len(chunks), document_name)
            if not chunks:
                return IngestResult(success=False, message=NO_CHUNKS_MESSAGE, chunks_created=0)

            embeddings = self.embedder.embed_texts([chunk.content for chunk in chunks])
            logger.info("Generated %d embeddings", len(embeddings))

            records = build_records(chunks, embeddings, self.config.store.vector_size)
            self.store.upsert(self.config.store.collection_name, records)
        except Exception as exc:
            logger.exception("Failed to ingest document %s (stage: %s)", document_name, error_stage(exc))
            return IngestResult(
                success=False,
                message=f"Failed to ingest document: {exc}",
                chunks_created=0,
            )

        logger.info("Successfully ingested document: %s", document_name)
        return IngestResult(
            success=True,
            message=f"Successfully ingested '{document_name}' into {len(chunks)} chunks",
            chunks_created=len(chunks),
        )
