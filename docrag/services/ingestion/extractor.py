"""Document text extraction.

Turns raw document bytes into plain text plus basic metadata:

* ``.pdf`` -- text layer read page by page with PyMuPDF (fitz); layout,
  images and annotations are ignored.
* ``.txt``, ``.md``, ``.markdown`` -- UTF-8 pass-through.

Any other extension is a skip signal (``None``), not an error.  Bytes that
cannot be parsed raise :class:`~docrag.utils.errors.ExtractionError`, which
aborts only the document being processed.
"""

from __future__ import annotations

from pathlib import PurePosixPath

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docrag.models.documents import ExtractedDocument
from docrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

# Extension -> media type label stored in chunk metadata.
_MEDIA_TYPES: dict[str, str] = {
    ".pdf": "pdf",
    ".txt": "txt",
    ".md": "md",
    ".markdown": "markdown",
}


def media_type_for(filename: str) -> str | None:
    """Return the media type label for *filename*, or None when unsupported."""
    return _MEDIA_TYPES.get(PurePosixPath(filename).suffix.lower())


def is_supported(filename: str) -> bool:
    return media_type_for(filename) is not None


class DocumentExtractor:
    """Extracts plain text from PDF, text and markdown documents."""

    def extract(self, content: bytes, filename: str) -> ExtractedDocument | None:
        """Extract text from *content*.

        Parameters
        ----------
        content:
            Raw document bytes.
        filename:
            Object name; its extension selects the extraction strategy.

        Returns
        -------
        ExtractedDocument | None
            ``None`` when the extension is unsupported.

        Raises
        ------
        ExtractionError
            If the bytes are corrupt or not decodable.
        """
        media_type = media_type_for(filename)
        if media_type is None:
            logger.info("extraction_skipped_unsupported", filename=filename)
            return None

        if media_type == "pdf":
            extracted = self._extract_pdf(content, filename)
        else:
            extracted = self._extract_text(content, filename)

        logger.debug(
            "document_extracted",
            filename=filename,
            media_type=media_type,
            pages=extracted.page_count,
            chars=len(extracted.text),
        )
        return extracted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_pdf(content: bytes, filename: str) -> ExtractedDocument:
        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(
                message=f"Cannot open PDF '{filename}': {exc}",
                provider_name="pymupdf",
            ) from exc

        try:
            page_texts = [doc[page_num].get_text("text") for page_num in range(len(doc))]
            page_count = len(doc)
            title = (doc.metadata or {}).get("title") or filename
        except Exception as exc:
            raise ExtractionError(
                message=f"Cannot read PDF text from '{filename}': {exc}",
                provider_name="pymupdf",
            ) from exc
        finally:
            doc.close()

        text = "\n".join(page.strip() for page in page_texts if page.strip())
        if not text:
            logger.warning("pdf_no_text_extracted", filename=filename, pages=page_count)
        return ExtractedDocument(text=text, page_count=page_count, title=title)

    @staticmethod
    def _extract_text(content: bytes, filename: str) -> ExtractedDocument:
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                message=f"'{filename}' is not valid UTF-8 text: {exc}",
            ) from exc
        # Strip a leading byte-order mark left by some editors.
        return ExtractedDocument(text=text.lstrip("\ufeff"), page_count=1, title=filename)
