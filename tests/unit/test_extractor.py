"""Unit tests for DocumentExtractor and the media type helpers."""

from __future__ import annotations

import fitz
import pytest

from docrag.services.ingestion.extractor import (
    DocumentExtractor,
    is_supported,
    media_type_for,
)
from docrag.utils.errors import ExtractionError


def _make_pdf(pages: list[str], title: str = "") -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    if title:
        doc.set_metadata({"title": title})
    data = doc.tobytes()
    doc.close()
    return data


class TestMediaTypes:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("a.pdf", "pdf"),
            ("A.PDF", "pdf"),
            ("notes.txt", "txt"),
            ("readme.md", "md"),
            ("guide.markdown", "markdown"),
            ("sheet.xlsx", None),
            ("no_extension", None),
        ],
    )
    def test_media_type_for(self, filename: str, expected: str | None) -> None:
        assert media_type_for(filename) == expected
        assert is_supported(filename) is (expected is not None)


class TestTextExtraction:
    def test_utf8_passthrough(self) -> None:
        result = DocumentExtractor().extract("héllo wörld".encode("utf-8"), "a.txt")

        assert result is not None
        assert result.text == "héllo wörld"
        assert result.page_count == 1
        assert result.title == "a.txt"

    def test_byte_order_mark_stripped(self) -> None:
        result = DocumentExtractor().extract(b"\xef\xbb\xbf# Title", "a.md")
        assert result is not None
        assert result.text == "# Title"

    def test_invalid_utf8_raises(self) -> None:
        with pytest.raises(ExtractionError):
            DocumentExtractor().extract(b"\xff\xfe\xfa", "broken.txt")

    def test_unsupported_extension_returns_none(self) -> None:
        assert DocumentExtractor().extract(b"PK\x03\x04", "archive.zip") is None


class TestPdfExtraction:
    def test_pages_joined_and_counted(self) -> None:
        pdf = _make_pdf(["First page text.", "Second page text."], title="Handbook")

        result = DocumentExtractor().extract(pdf, "handbook.pdf")

        assert result is not None
        assert result.page_count == 2
        assert "First page text." in result.text
        assert "Second page text." in result.text
        assert result.text.index("First") < result.text.index("Second")
        assert result.title == "Handbook"

    def test_title_falls_back_to_filename(self) -> None:
        result = DocumentExtractor().extract(_make_pdf(["Body."]), "untitled.pdf")
        assert result is not None
        assert result.title == "untitled.pdf"

    def test_corrupt_pdf_raises_extraction_error(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            DocumentExtractor().extract(b"definitely not a pdf", "bad.pdf")
        assert exc_info.value.provider_name == "pymupdf"
