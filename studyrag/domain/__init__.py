"""
Domain layer: entities and capability interfaces.
"""

from .entities import (
    Answer,
    Chunk,
    ChunkDraft,
    Completion,
    Document,
    DocumentInfo,
    ExtractedDocument,
    IngestionResult,
    OutputMode,
    QueryResult,
    RetrievedChunk,
    TextChunk,
    TokenUsage,
)
from .repositories import ChunkStore
from .services import Completer, Embedder, TextExtractor

__all__ = [
    "Answer",
    "Chunk",
    "ChunkDraft",
    "ChunkStore",
    "Completer",
    "Completion",
    "Document",
    "DocumentInfo",
    "Embedder",
    "ExtractedDocument",
    "IngestionResult",
    "OutputMode",
    "QueryResult",
    "RetrievedChunk",
    "TextChunk",
    "TextExtractor",
    "TokenUsage",
]
