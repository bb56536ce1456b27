"""Unit tests for TextChunker: sentence splitting and size-bounded accumulation."""

from __future__ import annotations

import pytest

from conftest import short_sentences_text
from docrag.services.ingestion.chunker import TextChunker

_BASE = {"namespace": "n1", "filename": "doc.txt", "media_type": "txt"}


class TestValidation:
    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=0, chunk_overlap=0)

    def test_rejects_overlap_not_below_size(self) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, chunk_overlap=100)

    def test_exposes_configuration(self) -> None:
        chunker = TextChunker(chunk_size=500, chunk_overlap=50)
        assert chunker.chunk_size == 500
        assert chunker.chunk_overlap == 50


class TestSentenceSplitting:
    def test_splits_on_terminal_punctuation(self) -> None:
        sentences = TextChunker.split_sentences("One. Two! Three? Four")
        assert sentences == ["One.", "Two!", "Three?", "Four"]

    def test_abbreviations_do_not_split(self) -> None:
        sentences = TextChunker.split_sentences("Dr. Smith met Mr. Jones. They talked.")
        assert sentences == ["Dr. Smith met Mr. Jones.", "They talked."]

    def test_period_inside_number_does_not_split(self) -> None:
        assert TextChunker.split_sentences("Pi is 3.14 roughly. Yes.") == [
            "Pi is 3.14 roughly.",
            "Yes.",
        ]


class TestChunking:
    def test_empty_text_yields_no_chunks(self) -> None:
        assert TextChunker().chunk("   \n ", _BASE) == []

    def test_short_text_is_one_chunk_at_index_zero(self) -> None:
        text = "A short document about nothing in particular."
        chunks = TextChunker(chunk_size=1000, chunk_overlap=200).chunk(text, _BASE)

        assert len(chunks) == 1
        assert chunks[0].chunk_index == 0
        assert chunks[0].text == text.strip()

    def test_long_text_splits_into_three_bounded_chunks(self) -> None:
        text = short_sentences_text(55)
        assert 2400 <= len(text) <= 2600

        chunks = TextChunker(chunk_size=1000, chunk_overlap=200).chunk(text, _BASE)

        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert all(len(c.text) <= 1000 for c in chunks)

    def test_indices_contiguous_for_many_chunks(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk(short_sentences_text(30), _BASE)

        assert len(chunks) >= 2
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))

    def test_oversized_sentence_forms_its_own_chunk(self) -> None:
        giant = "x" * 150 + "."
        text = f"Short one. {giant} Short two."
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk(text, _BASE)

        assert [c.text for c in chunks] == ["Short one.", giant, "Short two."]

    def test_chunks_do_not_share_text(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=50).chunk(short_sentences_text(10), _BASE)
        joined = " ".join(c.text for c in chunks)
        assert joined == short_sentences_text(10)

    def test_parent_metadata_copied_into_every_chunk(self) -> None:
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk(short_sentences_text(6), _BASE)
        for chunk in chunks:
            assert chunk.namespace == "n1"
            assert chunk.filename == "doc.txt"
            assert chunk.media_type == "txt"
