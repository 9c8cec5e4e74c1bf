"""
Name: In-Memory Chunk Store

Responsibilities:
  - Implement ChunkStore in process memory (dev, CI, tests)
  - Keep the same ordering and partial-failure behavior as PostgreSQL

Collaborators:
  - domain.repositories.ChunkStore: Interface implementation
  - strategies: insert loop

Constraints:
  - Thread-safe for concurrent requests (single lock around state)
  - Data is lost on process restart

Notes:
  - Documents are kept in creation order; chunks per document by index
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from ...domain.entities import Chunk, ChunkDraft, Document
from ...exceptions import StorageError
from ...logger import logger
from ..services.strategies import ExecutionStrategy, ItemFailure, SequentialStrategy


class InMemoryChunkStore:
    """R: Process-local ChunkStore."""

    def __init__(
        self,
        *,
        dimension: int = 384,
        strategy: Optional[ExecutionStrategy] = None,
    ):
        self._dimension = dimension
        self._strategy = strategy or SequentialStrategy()
        self._lock = threading.Lock()
        self._documents: Dict[UUID, Document] = {}
        self._chunks: Dict[UUID, Dict[int, Chunk]] = {}

    def create_document(self, title: str) -> Document:
        document = Document(id=uuid4(), title=title, created_at=datetime.now(timezone.utc))
        with self._lock:
            self._documents[document.id] = document
            self._chunks[document.id] = {}
        logger.info("InMemoryChunkStore: Document created", extra={"document_id": str(document.id)})
        return document

    def _insert_one(self, document_id: UUID, index: int, draft: ChunkDraft) -> Chunk:
        if len(draft.embedding) != self._dimension:
            raise ValueError(
                f"embedding has {len(draft.embedding)} dimensions, "
                f"expected {self._dimension}"
            )
        chunk = Chunk(
            id=uuid4(),
            document_id=document_id,
            content=draft.content,
            embedding=list(draft.embedding),
            index=index,
            char_count=len(draft.content),
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            if document_id not in self._documents:
                raise KeyError(f"document {document_id} does not exist")
            self._chunks[document_id][index] = chunk
        return chunk

    def insert_chunks(
        self, document_id: UUID, chunks: Sequence[ChunkDraft]
    ) -> List[Chunk]:
        """
        R: Insert chunks with index = position.

        Raises:
            StorageError: With the failing index; earlier chunks stay stored
        """
        try:
            stored = self._strategy.map(
                lambda index, draft: self._insert_one(document_id, index, draft),
                chunks,
            )
        except ItemFailure as failure:
            logger.error(
                "InMemoryChunkStore: Chunk insert failed",
                extra={"document_id": str(document_id), "failed_index": failure.index},
            )
            raise StorageError(
                f"Failed to insert chunk {failure.index}: {failure.error}",
                index=failure.index,
                original_error=failure.error,
            ) from failure.error
        return stored

    def fetch_all_chunks_with_embeddings(self) -> List[Chunk]:
        with self._lock:
            return [
                chunk
                for document_id in self._documents
                for _, chunk in sorted(self._chunks[document_id].items())
                if chunk.embedding
            ]

    def ping(self) -> bool:
        return True

    def clear(self) -> None:
        """R: Drop all documents and chunks."""
        with self._lock:
            self._documents.clear()
            self._chunks.clear()
