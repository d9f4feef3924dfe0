"""Tests for plain-text extraction from uploaded files."""

import io

import pytest
from docx import Document

from rag_pipeline.models import DocumentType
from rag_pipeline.parsing import SUPPORTED_EXTENSIONS, DocumentParser


@pytest.fixture
def parser():
    return DocumentParser()


@pytest.mark.parametrize(
    "name,expected",
    [
        ("notes.txt", DocumentType.PLAIN_TEXT),
        ("data.CSV", DocumentType.PLAIN_TEXT),
        ("readme.md", DocumentType.MARKDOWN),
        ("page.htm", DocumentType.HTML),
        ("paper.pdf", DocumentType.PDF),
        ("letter.docx", DocumentType.DOCX),
        ("image.png", DocumentType.UNKNOWN),
        ("no_extension", DocumentType.UNKNOWN),
    ],
)
def test_document_type_from_extension(parser, name, expected):
    assert parser.get_document_type(name) is expected
    assert parser.is_supported(name) is (expected is not DocumentType.UNKNOWN)


def test_supported_extensions():
    assert {".txt", ".pdf", ".docx", ".md", ".html"} <= SUPPORTED_EXTENSIONS


def test_plain_text_with_byte_order_mark(parser):
    result = parser.parse(b"\xef\xbb\xbf" + "Hello wörld".encode("utf-8"), "notes.txt")

    assert result.success is True
    assert result.content == "Hello wörld"
    assert result.character_count == 11
    assert result.error_message is None


def test_markdown_is_read_verbatim(parser):
    result = parser.parse(b"# Title\n\nSome *text*.", "readme.md")

    assert result.document_type is DocumentType.MARKDOWN
    assert result.content == "# Title\n\nSome *text*."


def test_html_tags_are_stripped(parser):
    data = b"<html><body><h1>Title</h1>\n<p>Fish &amp; chips</p></body></html>"

    result = parser.parse(data, "page.html")

    assert result.success is True
    assert result.content == "Title Fish & chips"


def test_docx_paragraphs_are_extracted(parser):
    document = Document()
    document.add_paragraph("First paragraph.")
    document.add_paragraph("")
    document.add_paragraph("Second paragraph.")
    buffer = io.BytesIO()
    document.save(buffer)

    result = parser.parse(buffer.getvalue(), "letter.docx")

    assert result.success is True
    assert result.content == "First paragraph.\nSecond paragraph."


def test_pdf_without_header_is_read_as_text(parser):
    result = parser.parse(b"Just text saved as pdf.", "fake.pdf")

    assert result.success is True
    assert result.document_type is DocumentType.PDF
    assert result.content == "Just text saved as pdf."


def test_unsupported_type_is_reported(parser):
    result = parser.parse(b"\x89PNG", "image.png")

    assert result.success is False
    assert "not supported" in result.error_message
    assert result.to_dict()["documentType"] == "Unknown"


def test_corrupt_docx_is_reported(parser):
    result = parser.parse(b"definitely not a zip archive", "broken.docx")

    assert result.success is False
    assert result.error_message


def test_parse_file_reads_from_disk(parser, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Stored on disk.", encoding="utf-8")

    result = parser.parse_file(str(path))

    assert result.success is True
    assert result.file_name == "notes.txt"
    assert result.content == "Stored on disk."


def test_parse_missing_file(parser, tmp_path):
    result = parser.parse_file(str(tmp_path / "missing.txt"))

    assert result.success is False
    assert result.file_name == "missing.txt"
    assert result.error_message
