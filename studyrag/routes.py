"""
Name: RAG API Controllers

Responsibilities:
  - Expose HTTP endpoints for document ingestion and question answering
  - Validate uploads (type, size) and serialize responses (camelCase JSON)
  - Delegate business logic to application use cases

Collaborators:
  - application.use_cases: IngestDocumentUseCase, AnswerQueryUseCase
  - container: Dependency providers for the use cases
  - error_responses: upload validation errors (RFC 7807)

Constraints:
  - PDF uploads only, bounded by MAX_UPLOAD_BYTES
  - Question/topK validation lives in the use case (single source of rules)

Notes:
  - Ingestion is blocking work, run in the threadpool from the async endpoint
"""

import os
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.concurrency import run_in_threadpool

from .application.use_cases import (
    AnswerQueryInput,
    AnswerQueryUseCase,
    IngestDocumentInput,
    IngestDocumentUseCase,
)
from .config import get_settings
from .container import get_answer_query_use_case, get_ingest_document_use_case
from .domain.entities import QueryResult
from .error_responses import payload_too_large, unsupported_media, validation_error

router = APIRouter()

_ALLOWED_MIME_TYPES = {"application/pdf"}


class CamelModel(BaseModel):
    """R: Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentInfoRes(CamelModel):
    title: Optional[str] = None
    author: Optional[str] = None
    creator: Optional[str] = None


class IngestTimingsRes(CamelModel):
    extraction_ms: float
    chunking_ms: float
    embedding_ms: float
    storage_ms: float


class IngestRes(CamelModel):
    document_id: UUID
    file_name: str
    page_count: int
    chunk_count: int
    document_info: DocumentInfoRes
    timings: IngestTimingsRes


class QueryReq(CamelModel):
    question: str = Field(..., description="Natural language question")
    top_k: Optional[int] = Field(
        default=None,
        description="Number of chunks to retrieve (1-20, default 5)",
    )


class SourceRes(CamelModel):
    chunk_id: UUID
    document_id: UUID
    content: str
    similarity: float  # R: Percentage 0-100, 2 decimals
    metadata: Dict[str, Any]


class QueryTimingsRes(CamelModel):
    embedding_ms: float
    search_ms: float
    llm_ms: float


class TokenUsageRes(CamelModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class QueryRes(CamelModel):
    answer: str
    sources: List[SourceRes]
    has_context: bool
    mode: str
    structured: Optional[Dict[str, Any]] = None
    total_time_ms: float
    timings: QueryTimingsRes
    token_usage: TokenUsageRes


def _is_pdf_upload(file: UploadFile, file_name: str) -> bool:
    mime_type = (file.content_type or "").lower()
    return mime_type in _ALLOWED_MIME_TYPES or file_name.lower().endswith(".pdf")


@router.post("/ingest", response_model=IngestRes, tags=["ingest"])
async def ingest(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    use_case: IngestDocumentUseCase = Depends(get_ingest_document_use_case),
):
    """R: Upload a PDF and index it (extract, chunk, embed, store)."""
    settings = get_settings()

    file_name = os.path.basename(file.filename or "").strip() or "upload.pdf"
    if not _is_pdf_upload(file, file_name):
        raise unsupported_media("Only PDF files are supported")

    content = await file.read()
    await file.close()

    if len(content) > settings.max_upload_bytes:
        raise payload_too_large(f"{settings.max_upload_bytes} bytes")
    if not content:
        raise validation_error("Uploaded file is empty")

    result = await run_in_threadpool(
        use_case.execute,
        IngestDocumentInput(
            file_bytes=content,
            file_name=file_name,
            title=(title or "").strip() or None,
        ),
    )

    return IngestRes(
        document_id=result.document_id,
        file_name=result.file_name,
        page_count=result.page_count,
        chunk_count=result.chunk_count,
        document_info=DocumentInfoRes(
            title=result.document_info.title,
            author=result.document_info.author,
            creator=result.document_info.creator,
        ),
        timings=IngestTimingsRes(
            extraction_ms=result.timings.get("extraction_ms", 0.0),
            chunking_ms=result.timings.get("chunking_ms", 0.0),
            embedding_ms=result.timings.get("embedding_ms", 0.0),
            storage_ms=result.timings.get("storage_ms", 0.0),
        ),
    )


def to_query_response(result: QueryResult) -> QueryRes:
    answer = result.answer
    return QueryRes(
        answer=answer.text,
        sources=[
            SourceRes(
                chunk_id=item.chunk.id,
                document_id=item.chunk.document_id,
                content=item.chunk.content,
                similarity=item.similarity_percent,
                metadata=item.chunk.metadata,
            )
            for item in answer.sources
        ],
        has_context=result.has_context,
        mode=answer.mode.value,
        structured=answer.structured,
        total_time_ms=result.timings.get("total_ms", 0.0),
        timings=QueryTimingsRes(
            embedding_ms=result.timings.get("embedding_ms", 0.0),
            search_ms=result.timings.get("search_ms", 0.0),
            llm_ms=result.timings.get("llm_ms", 0.0),
        ),
        token_usage=TokenUsageRes(
            prompt_tokens=answer.token_usage.prompt_tokens,
            completion_tokens=answer.token_usage.completion_tokens,
            total_tokens=answer.token_usage.total_tokens,
        ),
    )


@router.post("/query", response_model=QueryRes, tags=["query"])
def query(
    req: QueryReq,
    use_case: AnswerQueryUseCase = Depends(get_answer_query_use_case),
):
    """R: Answer a question from the indexed documents."""
    result = use_case.execute(AnswerQueryInput(question=req.question, top_k=req.top_k))
    return to_query_response(result)
