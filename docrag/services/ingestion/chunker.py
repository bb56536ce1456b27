"""Sentence-aligned text chunking.

Splits extracted document text into :class:`~docrag.models.rag.DocumentChunk`
objects bounded by a character budget.

The algorithm:

1. Split the text into sentence-like units at terminal punctuation
   (``.``, ``!``, ``?`` followed by whitespace or end of text).  Periods
   after common abbreviations ("Dr.", "vs.") do not end a sentence, and
   trailing text without punctuation forms its own unit.
2. Greedily join sentences with single spaces into a running buffer.  When
   appending the next sentence would push the buffer past ``chunk_size``,
   flush the buffer as a chunk and start a new one with that sentence.

A single sentence longer than ``chunk_size`` is kept whole as its own
chunk, so the size bound is soft.  ``chunk_overlap`` is validated and kept
for reporting; consecutive chunks do not share text.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from docrag.models.rag import DocumentChunk

logger = structlog.get_logger(logger_name=__name__)

# Common abbreviations that should NOT trigger a sentence split.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Ave",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "est",
        "inc",
        "ltd",
        "Fig",
        "e.g",
        "i.e",
    }
)

_ABBREVIATION_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(abbr) for abbr in sorted(_ABBREVIATIONS)) + r")\."
)
_SENTENCE_END_RE = re.compile(r"[.!?](?:\s|$)")


class TextChunker:
    """Splits text into sentence-aligned chunks of at most ``chunk_size`` characters.

    Parameters
    ----------
    chunk_size:
        Maximum characters per chunk (default 1000).
    chunk_overlap:
        Configured overlap in characters (default 200).  Must be smaller
        than *chunk_size*; not applied between chunks.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, base_metadata: dict[str, Any]) -> list[DocumentChunk]:
        """Split *text* into :class:`DocumentChunk` objects.

        Parameters
        ----------
        text:
            The full extracted text.
        base_metadata:
            Parent document fields copied into every chunk.  Expected keys:
            ``namespace`` and ``filename``; optionally ``media_type``,
            ``page_count``, ``title``, ``content_hash`` and ``processed_at``.

        Returns
        -------
        list[DocumentChunk]
            Chunks with contiguous ``chunk_index`` values starting at 0.
            Empty or whitespace-only input returns an empty list.
        """
        if not text or not text.strip():
            return []

        sentences = self.split_sentences(text)
        raw_chunks = self._accumulate_chunks(sentences)

        chunks = [
            DocumentChunk(text=chunk_text, chunk_index=index, **base_metadata)
            for index, chunk_text in enumerate(raw_chunks)
        ]

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            sentences=len(sentences),
            filename=base_metadata.get("filename"),
        )
        return chunks

    # ------------------------------------------------------------------
    # Sentence splitting
    # ------------------------------------------------------------------

    @staticmethod
    def split_sentences(text: str) -> list[str]:
        """Split *text* at sentence boundaries while respecting abbreviations.

        Periods after known abbreviations are masked with ``\\x00`` (same
        length, so match offsets still index the original text) before
        searching for terminal punctuation.
        """
        masked = _ABBREVIATION_RE.sub(lambda m: m.group(0)[:-1] + "\x00", text)

        sentences: list[str] = []
        last = 0
        for match in _SENTENCE_END_RE.finditer(masked):
            end = match.end()
            sentence = text[last:end].strip()
            if sentence:
                sentences.append(sentence)
            last = end

        remainder = text[last:].strip()
        if remainder:
            sentences.append(remainder)

        return sentences

    # ------------------------------------------------------------------
    # Chunk accumulation
    # ------------------------------------------------------------------

    def _accumulate_chunks(self, sentences: list[str]) -> list[str]:
        chunks: list[str] = []
        buffer = ""

        for sentence in sentences:
            if buffer and len(buffer) + 1 + len(sentence) > self._chunk_size:
                chunks.append(buffer)
                buffer = sentence
            elif buffer:
                buffer = f"{buffer} {sentence}"
            else:
                buffer = sentence

        if buffer:
            chunks.append(buffer)

        return chunks
