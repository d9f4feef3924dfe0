"""
models.py
---------

Plain value objects passed between the pipeline stages.  Chunks and
stored records are produced during ingestion; contexts and query results
are built fresh for every question and never persisted.

Each class offers ``to_dict`` returning the camelCase shape used when
results are printed as JSON by the command-line tools.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Payload keys written for every stored record.
PAYLOAD_CONTENT = "content"
PAYLOAD_SOURCE = "sourceDocument"
PAYLOAD_CHUNK_INDEX = "chunkIndex"
PAYLOAD_CREATED_AT = "createdAt"

UNKNOWN_SOURCE = "Unknown"


@dataclass(frozen=True)
class Chunk:
    """A bounded slice of a document's normalised text.

    Attributes
    ----------
    content : str
        The chunk text.
    source_document : str
        Name of the document the chunk was cut from.
    index : int
        0-based position of the chunk in emission order.
    """

    content: str
    source_document: str
    index: int


@dataclass
class StoredVectorRecord:
    """A vector plus payload as written to the vector store."""

    id: str
    vector: List[float]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchHit:
    id: str
    score: float
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CollectionInfo:
    point_count: int
    dimension: int


@dataclass
class RetrievedContext:
    """A retrieved chunk and its similarity score."""

    content: str
    source_document: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "sourceDocument": self.source_document,
            "score": self.score,
        }


@dataclass
class QueryResult:
    answer: str
    sources: List[RetrievedContext] = field(default_factory=list)
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [source.to_dict() for source in self.sources],
            "processingTimeMs": self.processing_time_ms,
        }


@dataclass
class IngestResult:
    success: bool
    message: str
    chunks_created: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "chunksCreated": self.chunks_created,
        }


@dataclass
class StoredChunkInfo:
    """Summary of a stored record used when inspecting a collection."""

    id: str
    source_document: str
    content_preview: str
    chunk_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceDocument": self.source_document,
            "contentPreview": self.content_preview,
            "chunkIndex": self.chunk_index,
        }


class DocumentType(enum.Enum):
    UNKNOWN = "Unknown"
    PLAIN_TEXT = "PlainText"
    PDF = "Pdf"
    DOCX = "Docx"
    MARKDOWN = "Markdown"
    HTML = "Html"


@dataclass
class ParsedDocument:
    """Outcome of extracting plain text from an uploaded file."""

    success: bool
    content: str = ""
    file_name: str = ""
    document_type: DocumentType = DocumentType.UNKNOWN
    error_message: Optional[str] = None

    @property
    def character_count(self) -> int:
        return len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "fileName": self.file_name,
            "documentType": self.document_type.value,
            "characterCount": self.character_count,
            "errorMessage": self.error_message,
        }
