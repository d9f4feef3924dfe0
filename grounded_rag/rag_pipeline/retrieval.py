"""Query-time retrieval: embed the question and search the store."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import RAGConfig
from .embedding import EmbeddingService
from .exceptions import RetrievalError
from .models import (
    PAYLOAD_CONTENT,
    PAYLOAD_SOURCE,
    UNKNOWN_SOURCE,
    RetrievedContext,
    SearchHit,
)
from .vector_store import VectorStore

logger = logging.getLogger(__name__)


def context_from_hit(hit: SearchHit) -> RetrievedContext:
    """Read a hit's payload, filling missing fields with safe defaults."""
    payload = hit.payload or {}
    return RetrievedContext(
        content=str(payload.get(PAYLOAD_CONTENT) or ""),
        source_document=str(payload.get(PAYLOAD_SOURCE) or UNKNOWN_SOURCE),
        score=float(hit.score),
    )


class RetrievalPipeline:
    def __init__(self, config: RAGConfig, embedder: EmbeddingService, store: VectorStore) -> None:
        self.config = config
        self.embedder = embedder
        self.store = store

    def retrieve(self, question: str, top_k: Optional[int] = None) -> List[RetrievedContext]:
        """Return the stored chunks most similar to ``question``.

        Results below the configured score threshold are filtered out by
        the store.  The store's order (best first) is kept as is.

        Raises
        ------
        RetrievalError
            If embedding the question or searching the store fails.
        """
        if top_k is None:
            top_k = self.config.retrieval.default_top_k
        threshold = self.config.retrieval.score_threshold
        try:
            query_vector = self.embedder.embed_query(question)
            hits = self.store.search(
                self.config.store.collection_name,
                query_vector,
                top_k,
                score_threshold=threshold,
            )
        except Exception as exc:
            raise RetrievalError(str(exc)) from exc

        # No context below the threshold, whichever store is plugged in.
        contexts = [context_from_hit(hit) for hit in hits if hit.score >= threshold]
        logger.info("Retrieved %d relevant chunks", len(contexts))
        return contexts
