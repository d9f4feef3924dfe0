"""
config.py
---------

Explicit configuration for the pipeline.  Every pipeline class receives
its settings through its constructor; nothing reads global state after
start-up.  :meth:`RAGConfig.from_env` builds a configuration from
``RAG_*`` environment variables (after loading a ``.env`` file) for the
command-line tools.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, TypeVar

from .env import load_env

T = TypeVar("T")


@dataclass
class StoreSettings:
    collection_name: str = "documents"
    # text-embedding-3-small produces 1536 dimensions
    vector_size: int = 1536
    persist_directory: Optional[str] = None


@dataclass
class ModelSettings:
    embedding_model: str = "text-embedding-3-small"
    chat_model: str = "gpt-4o"
    temperature: float = 0.2
    max_tokens: int = 1024
    api_key: Optional[str] = None
    base_url: Optional[str] = None


@dataclass
class ChunkingSettings:
    max_chunk_size: int = 500
    chunk_overlap: int = 100
    min_chunk_length: int = 50


@dataclass
class RetrievalSettings:
    score_threshold: float = 0.3
    default_top_k: int = 3


@dataclass
class RetryPolicy:
    """Backoff policy for throttled answer generation.

    The delay before retry ``n`` (0-based) is ``base_delay * 2 ** n``,
    which with the defaults gives 4s, 8s, 16s and 32s.
    """

    max_attempts: int = 5
    base_delay: float = 4.0


@dataclass
class RAGConfig:
    """Aggregate configuration handed to :class:`~rag_pipeline.main.RAGClient`."""

    store: StoreSettings = field(default_factory=StoreSettings)
    models: ModelSettings = field(default_factory=ModelSettings)
    chunking: ChunkingSettings = field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = field(default_factory=RetrievalSettings)
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def validate(self) -> None:
        if self.store.vector_size <= 0:
            raise ValueError("vector_size must be positive")
        if self.chunking.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if self.chunking.chunk_overlap < 0:
            raise ValueError("chunk_overlap must not be negative")
        if self.retry.max_attempts < 1:
            raise ValueError("retry max_attempts must be at least 1")
        if self.retry.base_delay < 0:
            raise ValueError("retry base_delay must not be negative")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        env_file: Optional[str] = None,
    ) -> "RAGConfig":
        """Build a configuration from environment variables.

        Parameters
        ----------
        environ : mapping, optional
            Variables to read instead of ``os.environ``.  When given, no
            ``.env`` file is loaded.
        env_file : str, optional
            Explicit ``.env`` path to load before reading ``os.environ``.

        Raises
        ------
        ValueError
            If a numeric variable cannot be parsed.
        """
        if environ is None:
            load_env(env_file)
            environ = os.environ

        def read(name: str, default: T, cast: Callable[[str], T]) -> T:
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return cast(raw.strip())
            except ValueError as exc:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from exc

        defaults = cls()
        config = cls(
            store=StoreSettings(
                collection_name=read("RAG_COLLECTION_NAME", defaults.store.collection_name, str),
                vector_size=read("RAG_VECTOR_SIZE", defaults.store.vector_size, int),
                persist_directory=environ.get("RAG_STORE_DIR") or None,
            ),
            models=ModelSettings(
                embedding_model=read("RAG_EMBEDDING_MODEL", defaults.models.embedding_model, str),
                chat_model=read("RAG_CHAT_MODEL", defaults.models.chat_model, str),
                temperature=read("RAG_TEMPERATURE", defaults.models.temperature, float),
                max_tokens=read("RAG_MAX_TOKENS", defaults.models.max_tokens, int),
                api_key=environ.get("OPENAI_API_KEY") or None,
                base_url=environ.get("OPENAI_BASE_URL") or None,
            ),
            chunking=ChunkingSettings(
                max_chunk_size=read("RAG_MAX_CHUNK_SIZE", defaults.chunking.max_chunk_size, int),
                chunk_overlap=read("RAG_CHUNK_OVERLAP", defaults.chunking.chunk_overlap, int),
                min_chunk_length=read("RAG_MIN_CHUNK_LENGTH", defaults.chunking.min_chunk_length, int),
            ),
            retrieval=RetrievalSettings(
                score_threshold=read("RAG_SCORE_THRESHOLD", defaults.retrieval.score_threshold, float),
                default_top_k=read("RAG_TOP_K", defaults.retrieval.default_top_k, int),
            ),
            retry=RetryPolicy(
                max_attempts=read("RAG_RETRY_ATTEMPTS", defaults.retry.max_attempts, int),
                base_delay=read("RAG_RETRY_BASE_DELAY", defaults.retry.base_delay, float),
            ),
        )
        config.validate()
        return config
