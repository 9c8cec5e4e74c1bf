"""
Name: Retriever Tests

Responsibilities:
  - Validate cosine ranking, stable tie order and top_k truncation
  - Validate zero-norm handling and empty-store behavior
  - Validate that a chunk queried with its own content ranks first
"""

from unittest.mock import Mock
from uuid import uuid4

import numpy as np
import pytest

from studyrag.application.retriever import (
    BruteForceRetriever,
    cosine_similarities,
    rank_chunks,
)
from studyrag.domain.entities import Chunk, ChunkDraft
from studyrag.domain.repositories import ChunkStore


def _chunk(content, embedding, index=0) -> Chunk:
    return Chunk(
        id=uuid4(),
        document_id=uuid4(),
        content=content,
        embedding=embedding,
        index=index,
        char_count=len(content),
    )


@pytest.mark.unit
class TestCosineSimilarities:
    def test_basic_scores(self):
        matrix = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        scores = cosine_similarities([1.0, 0.0], matrix)

        assert scores[0] == pytest.approx(1.0)
        assert scores[1] == pytest.approx(0.0)
        assert scores[2] == pytest.approx(1 / np.sqrt(2))

    def test_zero_norm_scores_zero_not_nan(self):
        """R: Should score zero vectors as 0 instead of NaN."""
        matrix = np.array([[0.0, 0.0], [1.0, 0.0]])

        scores = cosine_similarities([1.0, 0.0], matrix)
        zero_query = cosine_similarities([0.0, 0.0], matrix)

        assert scores.tolist() == [0.0, 1.0]
        assert zero_query.tolist() == [0.0, 0.0]


@pytest.mark.unit
class TestRankChunks:
    def test_orders_by_similarity_desc(self):
        low = _chunk("low", [0.0, 1.0])
        high = _chunk("high", [1.0, 0.0])
        mid = _chunk("mid", [1.0, 1.0])

        results = rank_chunks([1.0, 0.0], [low, high, mid], top_k=3)

        assert [r.chunk.content for r in results] == ["high", "mid", "low"]

    def test_ties_keep_fetch_order(self):
        """R: Should keep store order for equal scores (stable sort)."""
        chunks = [_chunk(f"c{i}", [1.0, 0.0], i) for i in range(4)]

        results = rank_chunks([1.0, 0.0], chunks, top_k=4)

        assert [r.chunk.content for r in results] == ["c0", "c1", "c2", "c3"]

    def test_truncates_to_top_k(self):
        chunks = [_chunk(f"c{i}", [1.0, float(i)]) for i in range(10)]

        assert len(rank_chunks([1.0, 0.0], chunks, top_k=3)) == 3

    def test_top_k_larger_than_corpus(self):
        chunks = [_chunk(f"c{i}", [1.0, 0.0]) for i in range(3)]

        assert len(rank_chunks([1.0, 0.0], chunks, top_k=100)) == 3

    def test_percent_rounded_from_unrounded_score(self):
        chunk = _chunk("c", [1.0, 1.0])

        (result,) = rank_chunks([1.0, 0.0], [chunk], top_k=1)

        assert result.similarity == pytest.approx(0.7071067811865475)
        assert result.similarity_percent == 70.71


@pytest.mark.unit
class TestBruteForceRetriever:
    def test_empty_store_returns_empty(self):
        store = Mock(spec=ChunkStore)
        store.fetch_all_chunks_with_embeddings.return_value = []

        assert BruteForceRetriever(store).retrieve([1.0, 0.0], 5) == []

    def test_fetches_and_ranks(self):
        store = Mock(spec=ChunkStore)
        store.fetch_all_chunks_with_embeddings.return_value = [
            _chunk("b", [0.0, 1.0]),
            _chunk("a", [1.0, 0.0]),
        ]

        results = BruteForceRetriever(store).retrieve([1.0, 0.0], 1)

        assert [r.chunk.content for r in results] == ["a"]
        assert results[0].similarity_percent == 100.0
        store.fetch_all_chunks_with_embeddings.assert_called_once()

    def test_chunk_content_retrieves_itself(self, fake_embedder, memory_store):
        """R: Should return a chunk as top-1 when queried with its own content."""
        # Arrange
        content = "Mitochondria produce ATP through oxidative phosphorylation."
        document = memory_store.create_document("Cell biology")
        memory_store.insert_chunks(
            document.id, [ChunkDraft(content=content, embedding=fake_embedder.embed(content))]
        )

        # Act
        results = BruteForceRetriever(memory_store).retrieve(fake_embedder.embed(content), 5)

        # Assert
        assert len(results) == 1
        assert results[0].chunk.content == content
        assert results[0].similarity_percent >= 99.9
