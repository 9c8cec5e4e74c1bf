"""
Name: Text Chunking Utility

Responsibilities:
  - Clean extracted text before chunking (preprocess)
  - Split text into fixed-size character windows with overlap
  - Report each window's offsets into the normalized text

Collaborators:
  - exceptions.ConfigError: invalid size/overlap pair
  - application.use_cases.ingest_document: chunks extracted text

Constraints:
  - Character granularity: windows may split words and sentences
  - overlap must satisfy 0 <= overlap < chunk_size

Notes:
  - chunk_size=500 / overlap=50 are the deployment defaults
  - Window content is emitted as-is (not trimmed); whitespace-only
    windows are skipped and do not consume an index

Algorithm:
  - end = min(start + chunk_size, len)
  - emit text[start:end] if it has non-whitespace content
  - stop once end == len, else start = end - overlap

Performance:
  - O(n) windows, n = len(text) / (chunk_size - overlap)
"""

import re

from ...domain.entities import TextChunk
from ...exceptions import ConfigError

_RUNS_OF_BLANKS = re.compile(r"[ \t]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def preprocess(text: str) -> str:
    """
    R: Clean raw extracted text.

    Collapses runs of spaces/tabs, converts CRLF to LF, strips NUL
    characters and trims.
    """
    text = _RUNS_OF_BLANKS.sub(" ", text or "")
    text = text.replace("\r\n", "\n")
    text = text.replace("\0", "")
    return text.strip()


def normalize(text: str) -> str:
    """R: CRLF -> LF, collapse 3+ newlines to 2, trim."""
    text = (text or "").replace("\r\n", "\n")
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def validate_chunk_params(chunk_size: int, overlap: int) -> None:
    """
    R: Fail fast on parameters that would loop forever or never advance.

    Raises:
        ConfigError: If chunk_size <= 0 or overlap not in [0, chunk_size)
    """
    if chunk_size <= 0:
        raise ConfigError(f"chunk_size must be > 0, got {chunk_size}")
    if overlap < 0:
        raise ConfigError(f"overlap must be >= 0, got {overlap}")
    if overlap >= chunk_size:
        raise ConfigError(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )


def chunk_text(text: str, chunk_size: int = 500, overlap: int = 50) -> list[TextChunk]:
    """
    R: Split text into overlapping fixed-size windows.

    Args:
        text: Document text (normalized here before splitting)
        chunk_size: Window size in characters
        overlap: Characters shared by consecutive windows

    Returns:
        Ordered TextChunk list; empty for empty/whitespace input

    Raises:
        ConfigError: If parameters are invalid

    Examples:
        >>> [c.content for c in chunk_text("abcdefghij", chunk_size=4, overlap=1)]
        ['abcd', 'defg', 'ghij']
    """
    validate_chunk_params(chunk_size, overlap)

    normalized = normalize(text)
    length = len(normalized)

    chunks: list[TextChunk] = []
    start = 0

    while start < length:
        end = min(start + chunk_size, length)
        window = normalized[start:end]

        if window.strip():
            chunks.append(
                TextChunk(
                    content=window,
                    index=len(chunks),
                    start_char=start,
                    end_char=end,
                )
            )

        if end == length:
            break

        start = end - overlap

    return chunks


class SimpleTextChunker:
    """
    R: Chunker bound to a validated size/overlap pair.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 50):
        """
        Args:
            chunk_size: Window size (must be > 0)
            overlap: Shared characters (must be >= 0 and < chunk_size)

        Raises:
            ConfigError: If parameters are invalid
        """
        validate_chunk_params(chunk_size, overlap)
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str) -> list[TextChunk]:
        return chunk_text(text, chunk_size=self.chunk_size, overlap=self.overlap)
