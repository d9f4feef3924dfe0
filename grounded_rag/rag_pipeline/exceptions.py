"""Exceptions raised by the pipeline's remote-service adapters.

The pipeline boundaries (ingestion, query, store administration and answer
synthesis) catch these and turn them into result objects.  Only
:class:`OperationCancelled` is allowed to escape to the caller.
"""

from __future__ import annotations


class RAGError(Exception):
    """Base exception for the retrieval pipeline."""

    def __init__(self, message: str, stage: str = "pipeline") -> None:
        self.message = message
        self.stage = stage
        super().__init__(message)


class DimensionMismatchError(RAGError):
    """A vector does not have the collection's configured dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension mismatch: expected {expected}, got {actual}",
            "upsert",
        )


class CollectionNotFoundError(RAGError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Collection not found: {name}", "vector_store")


class EmbeddingError(RAGError):
    """The embedding service failed or returned a malformed batch."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "embedding")


class RetrievalError(RAGError):
    def __init__(self, message: str) -> None:
        super().__init__(message, "retrieval")


class RateLimitedError(RAGError):
    """The generation service throttled the request (HTTP 429)."""

    def __init__(self, message: str = "Rate limited by the generation service (429)") -> None:
        super().__init__(message, "generation")


class OperationCancelled(RAGError):
    """The caller cancelled a pending request."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message, "cancelled")


def error_stage(exc: BaseException) -> str:
    """The pipeline stage ``exc`` was raised in, ``"unknown"`` for foreign errors."""
    return exc.stage if isinstance(exc, RAGError) else "unknown"
