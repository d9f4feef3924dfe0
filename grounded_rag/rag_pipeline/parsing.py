"""
parsing.py
----------

Extraction of plain text from uploaded files before ingestion.

Supported formats are plain text (``.txt``, ``.csv``, ``.json``,
``.xml``), Markdown, HTML, PDF (via ``pypdf``) and DOCX (via
``python-docx``).  Parsing never raises: failures come back as a
:class:`~rag_pipeline.models.ParsedDocument` with ``success=False`` and
the error message.
"""

from __future__ import annotations

import html
import io
import logging
import os
import re
from typing import Dict

from docx import Document as DocxDocument
from pypdf import PdfReader

from .models import DocumentType, ParsedDocument

logger = logging.getLogger(__name__)

_EXTENSION_TYPES: Dict[str, DocumentType] = {
    ".txt": DocumentType.PLAIN_TEXT,
    ".csv": DocumentType.PLAIN_TEXT,
    ".json": DocumentType.PLAIN_TEXT,
    ".xml": DocumentType.PLAIN_TEXT,
    ".pdf": DocumentType.PDF,
    ".docx": DocumentType.DOCX,
    ".md": DocumentType.MARKDOWN,
    ".markdown": DocumentType.MARKDOWN,
    ".html": DocumentType.HTML,
    ".htm": DocumentType.HTML,
}

SUPPORTED_EXTENSIONS = frozenset(_EXTENSION_TYPES)

_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


def _extension(file_name: str) -> str:
    return os.path.splitext(file_name)[1].lower()


def decode_text(data: bytes) -> str:
    """Decode UTF-8 bytes, dropping a byte-order mark if present."""
    return data.decode("utf-8-sig", errors="replace")


class DocumentParser:
    """Turns raw file bytes into plain text for the chunker."""

    def is_supported(self, file_name: str) -> bool:
        return _extension(file_name) in SUPPORTED_EXTENSIONS

    def get_document_type(self, file_name: str) -> DocumentType:
        return _EXTENSION_TYPES.get(_extension(file_name), DocumentType.UNKNOWN)

    def parse(self, data: bytes, file_name: str) -> ParsedDocument:
        """Extract text from ``data`` based on ``file_name``'s extension."""
        result = ParsedDocument(
            success=False,
            file_name=file_name,
            document_type=self.get_document_type(file_name),
        )
        logger.info("Parsing document: %s (type: %s)", file_name, result.document_type.value)
        try:
            if result.document_type in (DocumentType.PLAIN_TEXT, DocumentType.MARKDOWN):
                result.content = decode_text(data)
            elif result.document_type is DocumentType.PDF:
                result.content = self._parse_pdf(data)
            elif result.document_type is DocumentType.DOCX:
                result.content = self._parse_docx(data)
            elif result.document_type is DocumentType.HTML:
                result.content = self._parse_html(data)
            else:
                raise ValueError(f"Document type not supported: {_extension(file_name) or file_name}")
        except Exception as exc:
            logger.error("Failed to parse document %s: %s", file_name, exc)
            result.error_message = str(exc)
            return result

        result.success = True
        logger.info("Parsed %s: %d characters", file_name, result.character_count)
        return result

    def parse_file(self, path: str) -> ParsedDocument:
        """Read ``path`` from disk and parse it."""
        file_name = os.path.basename(path)
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            logger.error("Failed to read %s: %s", path, exc)
            return ParsedDocument(
                success=False,
                file_name=file_name,
                document_type=self.get_document_type(file_name),
                error_message=str(exc),
            )
        return self.parse(data, file_name)

    def _parse_pdf(self, data: bytes) -> str:
        if not data.startswith(b"%PDF"):
            # Text saved with a .pdf extension.
            logger.warning("File has a .pdf extension but no PDF header; reading as plain text")
            return decode_text(data)
        reader = PdfReader(io.BytesIO(data), strict=False)
        pages = []
        for page in reader.pages:
            text = page.extract_text() or ""
            if text.strip():
                pages.append(text)
        return "\n\n".join(pages).strip()

    def _parse_docx(self, data: bytes) -> str:
        document = DocxDocument(io.BytesIO(data))
        paragraphs = [p.text for p in document.paragraphs if p.text and p.text.strip()]
        return "\n".join(paragraphs).strip()

    def _parse_html(self, data: bytes) -> str:
        text = _HTML_TAG.sub(" ", decode_text(data))
        text = _WHITESPACE.sub(" ", text)
        return html.unescape(text).strip()
