"""
Name: Typed Pipeline Exceptions

Responsibilities:
  - Define the error taxonomy of the ingestion and query pipelines
  - Carry a stable error_code and an error_id for log correlation
  - Keep the original error for logs without exposing it to clients

Collaborators:
  - exception_handlers.py: Maps each class to an RFC 7807 response
  - application/use_cases: Raise validation and pipeline errors
  - infrastructure: Raise storage, extraction and completion errors

Notes:
  - User-caused: ValidationError, ExtractionError, NoChunksError
  - Programming/config: EmptyInputError, ConfigError
  - Backend failures: StorageError, EmbeddingError, CompletionError
"""

from __future__ import annotations

from uuid import uuid4


class RAGError(Exception):
    """
    R: Base class for pipeline errors.

    Provides error_code (class level), error_id (per instance) and the
    human-readable message.
    """

    error_code: str = "RAG_ERROR"

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)


class ValidationError(RAGError):
    """Invalid caller input (empty question, empty file, top_k out of range)."""

    error_code: str = "VALIDATION_ERROR"


class ExtractionError(RAGError):
    """No text could be recovered from the uploaded document."""

    error_code: str = "EXTRACTION_ERROR"


class NoChunksError(RAGError):
    """Normalized text produced zero chunks."""

    error_code: str = "NO_CHUNKS"


class EmptyInputError(RAGError):
    """Embedder called on blank text."""

    error_code: str = "EMPTY_INPUT"


class ConfigError(RAGError):
    """Invalid configuration (e.g. chunk overlap >= chunk size)."""

    error_code: str = "CONFIG_ERROR"


class StorageError(RAGError):
    """
    R: Chunk store failure.

    `index` is set when an insert failed at a given position; chunks before
    it are already committed.
    """

    error_code: str = "DATABASE_ERROR"

    def __init__(
        self,
        message: str,
        index: int | None = None,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, error_id=error_id, original_error=original_error)
        self.index = index


class EmbeddingError(RAGError):
    """Embedding backend failure (model load or encode)."""

    error_code: str = "EMBEDDING_ERROR"


class CompletionError(RAGError):
    """Language model call failed."""

    error_code: str = "LLM_ERROR"
