"""
main.py
-------

This module exposes the pipeline-facing surface of the package.  It
defines :class:`RAGClient`, a small wrapper that wires the ingestion,
retrieval, answer synthesis and store administration components around
one configuration, and a set of convenience functions for users who
prefer a simple functional interface over instantiating classes
directly.

If you wish to integrate this into a larger application, feel free
to import the pipeline classes directly and build your own
orchestration layer.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, List, Optional

from .admin import StoreAdmin
from .config import RAGConfig
from .embedding import EmbeddingService, OpenAIEmbeddingModel
from .exceptions import OperationCancelled, error_stage
from .generation import ChatService, OpenAIChatModel
from .ingestion import IngestionPipeline
from .models import IngestResult, QueryResult, StoredChunkInfo
from .parsing import DocumentParser
from .retrieval import RetrievalPipeline
from .synthesis import AnswerSynthesizer
from .vector_store import LocalVectorStore, VectorStore

logger = logging.getLogger(__name__)


class RAGClient:
    """High level interface for the ingestion and query pipeline.

    Parameters
    ----------
    config : RAGConfig
        Settings shared by every component.
    embedder : EmbeddingService
        Turns chunks and questions into vectors of ``config.store.vector_size``.
    chat : ChatService
        Generates the final answer.
    store : VectorStore
        Where chunk vectors are kept.
    parser : DocumentParser, optional
        Used by :meth:`ingest_file`.
    """

    def __init__(
        self,
        config: RAGConfig,
        embedder: EmbeddingService,
        chat: ChatService,
        store: VectorStore,
        *,
        parser: Optional[DocumentParser] = None,
    ) -> None:
        self.config = config
        self.store = store
        self.parser = parser or DocumentParser()
        self.admin = StoreAdmin(config.store, store)
        self.ingestion = IngestionPipeline(config, embedder, store, admin=self.admin)
        self.retrieval = RetrievalPipeline(config, embedder, store)
        self.synthesizer = AnswerSynthesizer(chat, config.retry)

    @classmethod
    def from_config(cls, config: Optional[RAGConfig] = None) -> "RAGClient":
        """Build a client backed by OpenAI-compatible models and a local store.

        When ``config`` is omitted it is read with :meth:`RAGConfig.from_env`.
        """
        if config is None:
            config = RAGConfig.from_env()
        models = config.models
        embedder = OpenAIEmbeddingModel(
            models.embedding_model,
            api_key=models.api_key,
            base_url=models.base_url,
        )
        chat = OpenAIChatModel(
            models.chat_model,
            temperature=models.temperature,
            max_tokens=models.max_tokens,
            api_key=models.api_key,
            base_url=models.base_url,
        )
        store = LocalVectorStore(config.store.persist_directory)
        return cls(config, embedder, chat, store)

    def ingest_document(self, content: str, document_name: str) -> IngestResult:
        return self.ingestion.ingest(content, document_name)

    def ingest_file(self, path: str, document_name: Optional[str] = None) -> IngestResult:
        """Parse a file from disk and ingest its text.

        Unsupported or unreadable files are reported as a failed
        :class:`IngestResult` rather than raised.
        """
        parsed = self.parser.parse_file(path)
        if not parsed.success:
            return IngestResult(
                success=False,
                message=f"Failed to parse {parsed.file_name}: {parsed.error_message}",
            )
        return self.ingest_document(parsed.content, document_name or parsed.file_name)

    def query(
        self,
        question: str,
        top_k: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> QueryResult:
        """Answer ``question`` from the most similar stored chunks.

        Parameters
        ----------
        question : str
            The user's question.
        top_k : int, optional
            Maximum number of chunks handed to the answer model.  Defaults
            to ``config.retrieval.default_top_k``.
        cancel_event : threading.Event, optional
            Checked before retrieval and before every generation attempt;
            once set, :class:`~rag_pipeline.exceptions.OperationCancelled`
            is raised.

        Returns
        -------
        QueryResult
            The answer, the contexts it was grounded on and the elapsed
            wall-clock time in milliseconds.  Failures are reported in
            the answer text with no sources.
        """
        started = time.perf_counter()
        logger.info("Processing query: %s", question)
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelled("Query cancelled before retrieval")
        try:
            contexts = self.retrieval.retrieve(question, top_k)
            answer = self.synthesizer.synthesize(question, contexts, cancel_event)
        except OperationCancelled:
            raise
        except Exception as exc:
            logger.exception("Failed to process query (stage: %s)", error_stage(exc))
            return QueryResult(
                answer=f"An error occurred while processing your query: {exc}",
                sources=[],
                processing_time_ms=(time.perf_counter() - started) * 1000.0,
            )
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info("Query processed in %.0fms", elapsed_ms)
        return QueryResult(answer=answer, sources=contexts, processing_time_ms=elapsed_ms)

    def ensure_collection_exists(self) -> bool:
        return self.admin.ensure_collection_exists()

    def document_count(self) -> int:
        return self.admin.document_count()

    def clear_collection(self) -> bool:
        return self.admin.clear_collection()

    def list_chunks(self, limit: int = 500) -> List[StoredChunkInfo]:
        return self.admin.list_chunks(limit)

    def delete_chunks(self, ids: Iterable[str]) -> int:
        return self.admin.delete_chunks(ids)


def initialise_rag(config: Optional[RAGConfig] = None) -> RAGClient:
    """Create a client and make sure its collection exists.

    This is a thin wrapper around :meth:`RAGClient.from_config` for
    convenience.
    """
    client = RAGClient.from_config(config)
    client.ensure_collection_exists()
    return client


def ingest_text(client: RAGClient, content: str, document_name: str) -> IngestResult:
    """Add a single document's text to an existing client."""
    return client.ingest_document(content, document_name)


def answer_question(
    client: RAGClient,
    question: str,
    *,
    top_k: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> QueryResult:
    """Generate an answer to a question using retrieved context.

    This is a thin wrapper around :meth:`RAGClient.query`.
    """
    return client.query(question, top_k=top_k, cancel_event=cancel_event)
