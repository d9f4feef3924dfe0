"""
chunking.py
-----------

Sentence-aware splitting of raw text into overlapping chunks.

Text is first normalised (runs of spaces, tabs and line breaks collapse
to one space) and cut into sentences.  Sentences are then packed
greedily into chunks of at most ``max_size`` characters; whenever a chunk
is closed, the next one is seeded with the closing chunk's last
``overlap`` characters, trimmed forward to a word boundary, so that
neighbouring chunks share some context.  Fragments shorter than
``min_chunk_length`` characters are dropped at the end.

The functions here are pure and deterministic: identical input always
yields identical chunk boundaries.
"""

from __future__ import annotations

import re
from typing import List

from .models import Chunk

SENTENCE_TERMINATORS = frozenset(".!?")
DEFAULT_MIN_CHUNK_LENGTH = 50

_WHITESPACE_RUN = re.compile(r"[ \t\n\r]+")


def normalise_whitespace(text: str) -> str:
    """Collapse space, tab and line-break runs to single spaces and trim."""
    return _WHITESPACE_RUN.sub(" ", text).strip(" ")


def _is_sentence_end(text: str, position: int) -> bool:
    # "3.14" stays whole because a digit follows the dot; a dot followed
    # directly by a capital ("Acme.Corp") still ends a sentence.
    if text[position] not in SENTENCE_TERMINATORS:
        return False
    following = position + 1
    if following >= len(text):
        return True
    return text[following].isspace() or text[following].isupper()


def split_sentences(text: str) -> List[str]:
    """Split text into sentences, keeping each sentence's punctuation."""
    sentences: List[str] = []
    start = 0
    for position in range(len(text)):
        if _is_sentence_end(text, position):
            sentence = text[start:position + 1].strip()
            if sentence:
                sentences.append(sentence)
            start = position + 1
    remainder = text[start:].strip()
    if remainder:
        sentences.append(remainder)
    return sentences


def overlap_tail(text: str, overlap: int) -> str:
    """Return the last ``overlap`` characters of ``text``, word aligned.

    The cut point is moved forward to just after the next space so the
    tail starts on a whole word.  Without such a space the raw suffix is
    returned.
    """
    if not text or overlap <= 0:
        return ""
    text = text.strip()
    if len(text) <= overlap:
        return text
    start = len(text) - overlap
    space = text.find(" ", start)
    if start < space < len(text):
        return text[space + 1:]
    return text[start:]


def chunk_text(
    text: str,
    max_size: int,
    overlap: int,
    min_chunk_length: int = DEFAULT_MIN_CHUNK_LENGTH,
) -> List[str]:
    """Split ``text`` into overlapping, size-bounded chunks.

    Parameters
    ----------
    text : str
        Raw document text.
    max_size : int
        Size in characters at which a chunk is closed.  A single
        sentence is never split, so a chunk may exceed this by up to one
        sentence.
    overlap : int
        Number of trailing characters carried into the next chunk.
        Should be smaller than ``max_size``.
    min_chunk_length : int, optional
        Chunks shorter than this are discarded.

    Returns
    -------
    list of str
        Chunk texts in source order.
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")
    if not text or not text.strip():
        return []

    sentences = split_sentences(normalise_whitespace(text))
    chunks: List[str] = []
    parts: List[str] = []
    current_length = 0

    for sentence in sentences:
        if current_length + len(sentence) > max_size and current_length > 0:
            closed = "".join(parts)
            chunks.append(closed.strip())
            tail = overlap_tail(closed, overlap)
            parts = [tail] if tail else []
            current_length = len(tail)
        parts.append(sentence)
        parts.append(" ")
        current_length += len(sentence) + 1

    remaining = "".join(parts).strip()
    if remaining:
        chunks.append(remaining)

    return [chunk for chunk in chunks if len(chunk) >= min_chunk_length]


class TextChunker:
    """Chunker bound to one set of chunking settings."""

    def __init__(
        self,
        max_chunk_size: int = 500,
        chunk_overlap: int = 100,
        min_chunk_length: int = DEFAULT_MIN_CHUNK_LENGTH,
    ) -> None:
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self.max_chunk_size = max_chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_length = min_chunk_length

    @classmethod
    def from_settings(cls, settings) -> "TextChunker":
        return cls(
            max_chunk_size=settings.max_chunk_size,
            chunk_overlap=settings.chunk_overlap,
            min_chunk_length=settings.min_chunk_length,
        )

    def chunk(self, text: str) -> List[str]:
        return chunk_text(
            text,
            self.max_chunk_size,
            self.chunk_overlap,
            min_chunk_length=self.min_chunk_length,
        )

    def chunk_document(self, text: str, source_document: str) -> List[Chunk]:
        """Chunk ``text`` and number the pieces 0, 1, 2, ... in order."""
        return [
            Chunk(content=content, source_document=source_document, index=index)
            for index, content in enumerate(self.chunk(text))
        ]
