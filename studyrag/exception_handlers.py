"""
Name: Pipeline Exception Handlers

Responsibilities:
  - Map each RAGError subclass to a status, ErrorCode and client detail
  - Log every mapped error with its error_id at a level matching its cause
  - Register the handlers (plus the generic fallback) on the app

Collaborators:
  - exceptions.py: RAGError taxonomy
  - error_responses.py: problem_response, AppHTTPException handler
  - main.py: register_exception_handlers(app)

Notes:
  - Caller errors keep their message; backend failures get a fixed detail
    so driver and provider messages stay in the logs
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from .error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    generic_exception_handler,
    problem_response,
)
from .exceptions import (
    CompletionError,
    EmbeddingError,
    ExtractionError,
    NoChunksError,
    RAGError,
    StorageError,
    ValidationError,
)
from .logger import logger

EXTRACTION_FAILED_DETAIL = (
    "Could not extract text from PDF. It may be scanned or image-based."
)
STORAGE_FAILED_DETAIL = "Database operation failed"
COMPLETION_FAILED_DETAIL = "Failed to generate answer"
EMBEDDING_FAILED_DETAIL = "Embedding model unavailable"


@dataclass(frozen=True)
class _Mapping:
    status_code: int
    code: ErrorCode
    log_level: int
    # R: None means "use the exception's own message"
    detail: Optional[str] = None


_MAPPINGS = {
    ValidationError: _Mapping(422, ErrorCode.VALIDATION_ERROR, logging.INFO),
    ExtractionError: _Mapping(
        422, ErrorCode.EXTRACTION_ERROR, logging.WARNING, EXTRACTION_FAILED_DETAIL
    ),
    NoChunksError: _Mapping(422, ErrorCode.NO_CHUNKS, logging.WARNING),
    StorageError: _Mapping(
        503, ErrorCode.DATABASE_ERROR, logging.ERROR, STORAGE_FAILED_DETAIL
    ),
    EmbeddingError: _Mapping(
        503, ErrorCode.EMBEDDING_ERROR, logging.ERROR, EMBEDDING_FAILED_DETAIL
    ),
    CompletionError: _Mapping(
        502, ErrorCode.LLM_ERROR, logging.ERROR, COMPLETION_FAILED_DETAIL
    ),
    # R: EmptyInputError, ConfigError and any other pipeline error
    RAGError: _Mapping(500, ErrorCode.INTERNAL_ERROR, logging.ERROR),
}


def _mapping_for(exc: RAGError) -> _Mapping:
    for exc_type in type(exc).__mro__:
        if exc_type in _MAPPINGS:
            return _MAPPINGS[exc_type]
    return _MAPPINGS[RAGError]


async def rag_error_handler(request: Request, exc: RAGError) -> JSONResponse:
    mapping = _mapping_for(exc)
    extra = {
        "error_id": exc.error_id,
        "error_code": exc.error_code,
        "error_message": exc.message,
    }
    failed_index = getattr(exc, "index", None)
    if failed_index is not None:
        extra["failed_index"] = failed_index
    logger.log(mapping.log_level, f"{type(exc).__name__} handled", extra=extra)

    return problem_response(
        request,
        mapping.status_code,
        mapping.code,
        mapping.detail or exc.message,
        errors=[{"error_id": exc.error_id}],
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers on the FastAPI app.

    Usage:
        register_exception_handlers(app)
    """
    for exc_type in _MAPPINGS:
        app.add_exception_handler(exc_type, rag_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
