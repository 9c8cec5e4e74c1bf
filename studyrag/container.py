"""
Name: Dependency Injection Container

Responsibilities:
  - Wire concrete stores, embedders and completers from settings
  - Provide factory functions for the use cases
  - Manage singleton instances (lru_cache)

Collaborators:
  - config.get_settings
  - infrastructure: stores, embedders, completers, extractor, chunker
  - application: use cases, retriever, composer
  - routes.py: FastAPI Depends() on the use case factories

Constraints:
  - Manual DI (no container library)
  - The embedder singleton owns the process-wide model handle

Notes:
  - This is the composition root
  - Tests override get_*_use_case via app.dependency_overrides
"""

from functools import lru_cache

from .application.answer_composer import AnswerComposer
from .application.retriever import BruteForceRetriever, Retriever
from .application.use_cases import AnswerQueryUseCase, IngestDocumentUseCase
from .config import get_settings
from .domain.repositories import ChunkStore
from .domain.services import Completer, Embedder, TextExtractor
from .infrastructure.parsers import PdfTextExtractor
from .infrastructure.repositories import InMemoryChunkStore, PostgresChunkStore
from .infrastructure.services import (
    FakeCompleter,
    FakeEmbedder,
    GoogleCompleter,
    SentenceTransformerEmbedder,
    strategy_for,
)
from .infrastructure.text import SimpleTextChunker


@lru_cache
def get_chunk_store() -> ChunkStore:
    """
    R: Get singleton chunk store.

    Returns:
        PostgreSQL store, or in-memory when STORE_BACKEND=memory
    """
    settings = get_settings()
    strategy = strategy_for(settings.insert_concurrency)
    if settings.store_backend == "memory":
        return InMemoryChunkStore(dimension=settings.embedding_dimension, strategy=strategy)
    return PostgresChunkStore(dimension=settings.embedding_dimension, strategy=strategy)


@lru_cache
def get_embedder() -> Embedder:
    """R: Get singleton embedder (local model or fake)."""
    settings = get_settings()
    strategy = strategy_for(settings.embed_concurrency)
    if settings.fake_embeddings:
        return FakeEmbedder(
            dimension=settings.embedding_dimension,
            max_chars=settings.embedding_max_chars,
            strategy=strategy,
        )
    return SentenceTransformerEmbedder(
        settings.embedding_model,
        dimension=settings.embedding_dimension,
        max_chars=settings.embedding_max_chars,
        strategy=strategy,
    )


@lru_cache
def get_completer() -> Completer:
    """R: Get singleton completer (Gemini or fake)."""
    settings = get_settings()
    if settings.fake_llm:
        return FakeCompleter()
    return GoogleCompleter(api_key=settings.google_api_key, model_id=settings.llm_model)


@lru_cache
def get_text_extractor() -> TextExtractor:
    return PdfTextExtractor()


def get_chunker() -> SimpleTextChunker:
    settings = get_settings()
    return SimpleTextChunker(chunk_size=settings.chunk_size, overlap=settings.chunk_overlap)


def get_retriever() -> Retriever:
    return BruteForceRetriever(get_chunk_store())


def get_answer_composer() -> AnswerComposer:
    settings = get_settings()
    return AnswerComposer(
        get_completer(),
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )


def get_ingest_document_use_case() -> IngestDocumentUseCase:
    """R: Build the ingestion use case with injected dependencies."""
    return IngestDocumentUseCase(
        extractor=get_text_extractor(),
        chunker=get_chunker(),
        embedder=get_embedder(),
        store=get_chunk_store(),
    )


def get_answer_query_use_case() -> AnswerQueryUseCase:
    """R: Build the query use case with injected dependencies."""
    settings = get_settings()
    return AnswerQueryUseCase(
        embedder=get_embedder(),
        retriever=get_retriever(),
        composer=get_answer_composer(),
        default_top_k=settings.default_top_k,
        max_top_k=settings.max_top_k,
    )
