"""
Name: Repository Interfaces (Ports)

Responsibilities:
  - Define the ChunkStore contract used by ingestion and retrieval

Collaborators:
  - infrastructure.repositories: PostgresChunkStore, InMemoryChunkStore
  - application: IngestDocumentUseCase, BruteForceRetriever

Constraints:
  - insert_chunks assigns index = position in the input sequence
  - A failed insert raises StorageError(index=i); chunks before i stay committed
  - fetch_all_chunks_with_embeddings is unscoped and unpaginated
"""

from typing import List, Protocol, Sequence
from uuid import UUID

from .entities import Chunk, ChunkDraft, Document


class ChunkStore(Protocol):
    """R: Persistence for documents and embedded chunks."""

    def create_document(self, title: str) -> Document:
        ...

    def insert_chunks(
        self, document_id: UUID, chunks: Sequence[ChunkDraft]
    ) -> List[Chunk]:
        ...

    def fetch_all_chunks_with_embeddings(self) -> List[Chunk]:
        ...

    def ping(self) -> bool:
        ...
