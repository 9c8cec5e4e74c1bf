"""
Unit tests for the fixed-window text chunker.
"""

import pytest

from studyrag.exceptions import ConfigError
from studyrag.infrastructure.text import (
    SimpleTextChunker,
    chunk_text,
    normalize,
    preprocess,
)


@pytest.mark.unit
class TestChunkText:
    """Test suite for chunk_text."""

    def test_small_example_windows(self):
        """R: Should emit overlapping windows that end exactly at the text end."""
        chunks = chunk_text("abcdefghij", chunk_size=4, overlap=1)

        assert [c.content for c in chunks] == ["abcd", "defg", "ghij"]
        assert [c.index for c in chunks] == [0, 1, 2]
        assert [(c.start_char, c.end_char) for c in chunks] == [(0, 4), (3, 7), (6, 10)]

    def test_text_shorter_than_chunk_size(self):
        """R: Should return a single chunk holding the whole text."""
        chunks = chunk_text("short text", chunk_size=500, overlap=50)

        assert len(chunks) == 1
        assert chunks[0].content == "short text"
        assert chunks[0].index == 0

    def test_empty_and_blank_text(self):
        """R: Should return no chunks for empty or whitespace-only input."""
        assert chunk_text("") == []
        assert chunk_text("   \n\n\t  ") == []

    def test_consecutive_windows_share_overlap(self):
        """R: Should repeat exactly `overlap` characters between neighbours."""
        text = "".join(chr(ord("a") + (i % 26)) for i in range(1200))
        chunks = chunk_text(text, chunk_size=500, overlap=50)

        for previous, current in zip(chunks, chunks[1:]):
            assert previous.content[-50:] == current.content[:50]
            assert current.start_char == previous.end_char - 50

    def test_windows_never_exceed_chunk_size(self):
        text = "word " * 700
        chunks = chunk_text(text, chunk_size=500, overlap=50)

        assert all(len(c.content) <= 500 for c in chunks)

    def test_chunk_count_formula(self):
        """R: Should produce ceil((n - overlap) / (size - overlap)) windows."""
        text = "x" * 2000
        chunks = chunk_text(text, chunk_size=500, overlap=50)

        # (2000 - 50) / 450 = 4.33 -> 5
        assert len(chunks) == 5
        assert chunks[-1].end_char == 2000

    def test_offsets_point_into_normalized_text(self):
        """R: Should report [start, end) offsets of each window's content."""
        text = "Line one.\r\n\r\n\r\n\r\nLine two is a bit longer than the first."
        normalized = normalize(text)
        chunks = chunk_text(text, chunk_size=20, overlap=5)

        for chunk in chunks:
            assert normalized[chunk.start_char:chunk.end_char] == chunk.content

    def test_whitespace_window_is_skipped_without_consuming_index(self):
        """R: Should skip blank windows and keep indices contiguous."""
        text = "abcd" + " " * 12 + "wxyz"
        chunks = chunk_text(text, chunk_size=4, overlap=0)

        assert [c.content for c in chunks] == ["abcd", "wxyz"]
        assert [c.index for c in chunks] == [0, 1]

    def test_deterministic(self):
        text = "The mitochondria is the powerhouse of the cell. " * 40

        first = chunk_text(text, chunk_size=120, overlap=20)
        second = chunk_text(text, chunk_size=120, overlap=20)

        assert first == second

    def test_zero_overlap(self):
        chunks = chunk_text("abcdefgh", chunk_size=4, overlap=0)

        assert [c.content for c in chunks] == ["abcd", "efgh"]

    @pytest.mark.parametrize(
        "chunk_size,overlap",
        [(0, 0), (-5, 0), (10, -1), (10, 10), (10, 20)],
    )
    def test_invalid_parameters_raise_config_error(self, chunk_size, overlap):
        """R: Should reject parameters that would never advance."""
        with pytest.raises(ConfigError):
            chunk_text("some text", chunk_size=chunk_size, overlap=overlap)


@pytest.mark.unit
class TestTextCleaning:
    """Test suite for preprocess/normalize."""

    def test_preprocess_collapses_blanks_and_strips_nul(self):
        raw = "  Hello \t\t world\r\nnext\0 line  "

        assert preprocess(raw) == "Hello world\nnext line"

    def test_normalize_collapses_excess_newlines(self):
        assert normalize("a\r\n\r\n\r\n\r\nb\n\n\n\nc") == "a\n\nb\n\nc"

    def test_normalize_is_idempotent(self):
        text = "  a\n\n\n\nb \r\n c  "

        assert normalize(normalize(text)) == normalize(text)


@pytest.mark.unit
class TestSimpleTextChunker:
    """Test suite for SimpleTextChunker."""

    def test_chunk_uses_configured_parameters(self):
        chunker = SimpleTextChunker(chunk_size=4, overlap=1)

        assert [c.content for c in chunker.chunk("abcdefghij")] == ["abcd", "defg", "ghij"]

    def test_defaults(self):
        chunker = SimpleTextChunker()

        assert chunker.chunk_size == 500
        assert chunker.overlap == 50

    def test_invalid_configuration_fails_at_construction(self):
        with pytest.raises(ConfigError):
            SimpleTextChunker(chunk_size=100, overlap=100)
