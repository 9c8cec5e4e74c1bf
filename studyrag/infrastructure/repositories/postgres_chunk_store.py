"""
Name: PostgreSQL Chunk Store Implementation

Responsibilities:
  - Implement ChunkStore for PostgreSQL + pgvector
  - Use the connection pool for connection reuse
  - Insert chunks one statement per chunk, in order, without a wrapping
    transaction (earlier chunks stay committed if a later one fails)
  - Fetch every embedded chunk for application-side ranking

Collaborators:
  - domain.repositories.ChunkStore: Interface implementation
  - infrastructure.db.pool: Connection pool (pgvector registered per connection)
  - strategies: insert loop
  - psycopg.types.json.Json: metadata jsonb

Constraints:
  - Embedding dimension validated per chunk before the insert
  - Statement timeout configured per session by the pool

Notes:
  - No similarity SQL here: ranking lives in application.retriever
"""

from typing import List, Optional, Sequence
from uuid import UUID, uuid4

import numpy as np
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from ...domain.entities import Chunk, ChunkDraft, Document
from ...exceptions import StorageError
from ...logger import logger
from ..services.strategies import ExecutionStrategy, ItemFailure, SequentialStrategy


class PostgresChunkStore:
    """
    R: PostgreSQL implementation of ChunkStore.
    """

    def __init__(
        self,
        pool: Optional[ConnectionPool] = None,
        *,
        dimension: int = 384,
        strategy: Optional[ExecutionStrategy] = None,
    ):
        """
        Args:
            pool: Connection pool (if None, uses global pool)
            dimension: Expected embedding dimension (vector column size)
            strategy: Loop strategy for insert_chunks
        """
        self._pool = pool
        self._dimension = dimension
        self._strategy = strategy or SequentialStrategy()

    def _get_pool(self) -> ConnectionPool:
        """R: Get pool, falling back to global if not injected."""
        if self._pool is not None:
            return self._pool

        from ..db.pool import get_pool

        return get_pool()

    def create_document(self, title: str) -> Document:
        """
        R: Insert a document row.

        Raises:
            StorageError: If database operation fails
        """
        document_id = uuid4()
        try:
            with self._get_pool().connection() as conn:
                row = conn.execute(
                    """
                    INSERT INTO documents (id, title)
                    VALUES (%s, %s)
                    RETURNING created_at
                    """,
                    (document_id, title),
                ).fetchone()
        except Exception as e:
            logger.error(f"PostgresChunkStore: Failed to create document: {e}")
            raise StorageError(f"Failed to create document: {e}", original_error=e) from e

        logger.info(f"PostgresChunkStore: Document created: {document_id}")
        return Document(id=document_id, title=title, created_at=row[0] if row else None)

    def _insert_one(self, document_id: UUID, index: int, draft: ChunkDraft) -> Chunk:
        if len(draft.embedding) != self._dimension:
            raise ValueError(
                f"embedding has {len(draft.embedding)} dimensions, "
                f"expected {self._dimension}"
            )

        chunk_id = uuid4()
        char_count = len(draft.content)
        # R: One connection checkout per chunk; the pool commits on exit
        with self._get_pool().connection() as conn:
            row = conn.execute(
                """
                INSERT INTO document_chunks
                  (id, document_id, chunk_index, content, embedding, metadata)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING created_at
                """,
                (
                    chunk_id,
                    document_id,
                    index,
                    draft.content,
                    np.asarray(draft.embedding, dtype=np.float32),
                    Json({"chunkIndex": index, "charCount": char_count}),
                ),
            ).fetchone()

        return Chunk(
            id=chunk_id,
            document_id=document_id,
            content=draft.content,
            embedding=list(draft.embedding),
            index=index,
            char_count=char_count,
            created_at=row[0] if row else None,
        )

    def insert_chunks(
        self, document_id: UUID, chunks: Sequence[ChunkDraft]
    ) -> List[Chunk]:
        """
        R: Insert chunks with chunk_index = position.

        Raises:
            StorageError: With the failing index; earlier chunks stay committed
        """
        try:
            stored = self._strategy.map(
                lambda index, draft: self._insert_one(document_id, index, draft),
                chunks,
            )
        except ItemFailure as failure:
            logger.error(
                f"PostgresChunkStore: Chunk insert failed at index {failure.index}: "
                f"{failure.error}"
            )
            raise StorageError(
                f"Failed to insert chunk {failure.index}: {failure.error}",
                index=failure.index,
                original_error=failure.error,
            ) from failure.error

        logger.info(
            f"PostgresChunkStore: Inserted {len(stored)} chunks for document {document_id}"
        )
        return stored

    def fetch_all_chunks_with_embeddings(self) -> List[Chunk]:
        """
        R: Every chunk with a non-null embedding, oldest document first.

        Raises:
            StorageError: If the query fails
        """
        try:
            with self._get_pool().connection() as conn:
                rows = conn.execute(
                    """
                    SELECT c.id, c.document_id, c.chunk_index, c.content,
                           c.embedding, c.created_at
                    FROM document_chunks c
                    JOIN documents d ON d.id = c.document_id
                    WHERE c.embedding IS NOT NULL
                    ORDER BY d.created_at, c.document_id, c.chunk_index
                    """
                ).fetchall()
        except Exception as e:
            logger.error(f"PostgresChunkStore: Fetch chunks failed: {e}")
            raise StorageError(f"Fetch chunks failed: {e}", original_error=e) from e

        logger.debug(f"PostgresChunkStore: Fetched {len(rows)} chunks")
        return [
            Chunk(
                id=r[0],
                document_id=r[1],
                index=r[2],
                content=r[3],
                embedding=[float(v) for v in r[4]],
                char_count=len(r[3]),
                created_at=r[5],
            )
            for r in rows
        ]

    def ping(self) -> bool:
        """
        R: Verify database connectivity via pool.

        Raises:
            StorageError: If the trivial query fails
        """
        try:
            with self._get_pool().connection() as conn:
                conn.execute("SELECT 1")
            return True
        except Exception as e:
            logger.warning(f"PostgresChunkStore: ping failed: {e}")
            raise StorageError(f"Ping failed: {e}", original_error=e) from e
