"""
Name: Retriever (brute-force cosine ranking)

Responsibilities:
  - Rank every stored chunk against a query vector by cosine similarity
  - Return the top_k results with a reportable percentage

Collaborators:
  - domain.repositories.ChunkStore: fetch_all_chunks_with_embeddings
  - numpy: vectorized dot products and norms

Constraints:
  - Exact ranking over the whole corpus, O(n * D) per query
  - Zero-norm vectors score 0 (never NaN)
  - Stable sort: equal scores keep fetch order
  - Ranking uses unrounded scores; the percentage is rounded to 2 decimals

Notes:
  - Retriever is a Protocol so an indexed implementation can replace
    BruteForceRetriever without touching callers
"""

from typing import List, Protocol, Sequence

import numpy as np

from ..domain.entities import Chunk, RetrievedChunk
from ..domain.repositories import ChunkStore
from ..logger import logger


class Retriever(Protocol):
    def retrieve(self, query_vector: Sequence[float], top_k: int) -> List[RetrievedChunk]:
        ...


def cosine_similarities(query_vector: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """
    R: Cosine similarity of query_vector against each row of matrix.

    Rows (or a query) with zero norm get similarity 0.
    """
    query = np.asarray(query_vector, dtype=np.float64)
    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)

    denominators = row_norms * query_norm
    dots = matrix @ query
    scores = np.zeros(len(matrix), dtype=np.float64)
    nonzero = denominators > 0
    scores[nonzero] = dots[nonzero] / denominators[nonzero]
    return scores


def rank_chunks(
    query_vector: Sequence[float], chunks: Sequence[Chunk], top_k: int
) -> List[RetrievedChunk]:
    """R: Score, stable-sort descending and truncate to top_k."""
    if not chunks or top_k <= 0:
        return []

    matrix = np.asarray([chunk.embedding for chunk in chunks], dtype=np.float64)
    scores = cosine_similarities(query_vector, matrix)

    # R: mergesort is stable; negate for descending order
    order = np.argsort(-scores, kind="mergesort")[:top_k]

    return [
        RetrievedChunk(
            chunk=chunks[i],
            similarity=float(scores[i]),
            similarity_percent=round(float(scores[i]) * 100, 2),
        )
        for i in order
    ]


class BruteForceRetriever:
    """R: Retriever that scans the full chunk store for each query."""

    def __init__(self, store: ChunkStore):
        self.store = store

    def retrieve(self, query_vector: Sequence[float], top_k: int) -> List[RetrievedChunk]:
        """
        R: Top-k chunks by cosine similarity.

        Returns:
            min(top_k, corpus size) results; [] for an empty store

        Raises:
            StorageError: If the store fetch fails
        """
        chunks = self.store.fetch_all_chunks_with_embeddings()
        if not chunks:
            logger.warning("No chunks found in store")
            return []

        results = rank_chunks(query_vector, chunks, top_k)
        logger.info(
            "Similarity search completed",
            extra={
                "total_chunks": len(chunks),
                "result_count": len(results),
                "top_similarity": results[0].similarity_percent if results else None,
            },
        )
        return results
