"""
Name: Domain Entities

Responsibilities:
  - Define core entities (Document, Chunk) and pipeline values
    (TextChunk, RetrievedChunk, Answer, OutputMode, results)
  - Provide type safety for the domain layer

Collaborators:
  - None (pure domain layer, no external dependencies)

Constraints:
  - No dependencies on infrastructure or frameworks
  - Document and Chunk are immutable once created

Notes:
  - Chunk.metadata mirrors the jsonb column (chunkIndex, charCount)
  - similarity is the raw cosine; similarity_percent is the rounded report value
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID


@dataclass(frozen=True)
class Document:
    """
    R: An ingested file (metadata only).

    Attributes:
        id: Unique document identifier
        title: Document title (defaults to the uploaded file name)
        created_at: Creation timestamp
    """

    id: UUID
    title: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Chunk:
    """
    R: A stored text fragment with its embedding.

    Attributes:
        id: Chunk identifier
        document_id: Owning document
        content: Chunk text (never empty after trim)
        embedding: Unit-normalized vector of the deployment dimension
        index: Zero-based position within the document
        char_count: len(content)
        created_at: Insert timestamp
    """

    id: UUID
    document_id: UUID
    content: str
    embedding: List[float]
    index: int
    char_count: int
    created_at: Optional[datetime] = None

    @property
    def metadata(self) -> Dict[str, Any]:
        return {"chunkIndex": self.index, "charCount": self.char_count}


@dataclass(frozen=True)
class ChunkDraft:
    """R: A chunk ready to be stored (content plus embedding, no identity yet)."""

    content: str
    embedding: List[float]


@dataclass(frozen=True)
class TextChunk:
    """
    R: Chunker output window.

    start_char/end_char are offsets into the normalized text ([start, end)).
    """

    content: str
    index: int
    start_char: int
    end_char: int


@dataclass(frozen=True)
class RetrievedChunk:
    """R: A chunk ranked against a query."""

    chunk: Chunk
    similarity: float
    similarity_percent: float


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class Completion:
    """R: Raw language model output plus token accounting."""

    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)


class OutputMode(str, Enum):
    """
    R: Requested answer shape.

    Detected once from the question text; "flashcard" wins over "quiz".
    """

    PROSE = "prose"
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"

    @classmethod
    def from_question(cls, question: str) -> "OutputMode":
        lowered = (question or "").lower()
        if "flashcard" in lowered:
            return cls.FLASHCARDS
        if "quiz" in lowered:
            return cls.QUIZ
        return cls.PROSE

    @property
    def is_structured(self) -> bool:
        return self is not OutputMode.PROSE


@dataclass
class Answer:
    """
    R: Composed answer.

    Attributes:
        text: Answer text (compact JSON when structured extraction succeeded)
        sources: Retrieved chunks in rank order
        token_usage: Usage reported by the completer (zero if not called)
        mode: Output mode detected from the question
        structured: Parsed {type, data} payload, None for prose or on degrade
    """

    text: str
    sources: List[RetrievedChunk] = field(default_factory=list)
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    mode: OutputMode = OutputMode.PROSE
    structured: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class DocumentInfo:
    title: Optional[str] = None
    author: Optional[str] = None
    creator: Optional[str] = None


@dataclass(frozen=True)
class ExtractedDocument:
    """R: Text extractor output."""

    text: str
    page_count: int
    info: DocumentInfo = field(default_factory=DocumentInfo)


@dataclass
class IngestionResult:
    document_id: UUID
    file_name: str
    page_count: int
    chunk_count: int
    document_info: DocumentInfo
    timings: Dict[str, float] = field(default_factory=dict)


@dataclass
class QueryResult:
    """
    R: Query pipeline output.

    timings holds embedding_ms, search_ms, llm_ms and total_ms.
    """

    answer: Answer
    has_context: bool
    timings: Dict[str, float] = field(default_factory=dict)
