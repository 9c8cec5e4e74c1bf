"""
Name: Embedder Tests

Responsibilities:
  - FakeEmbedder: determinism, unit norm, lexical similarity, blank input
  - SentenceTransformerEmbedder: truncation, normalization flag, lazy load,
    dimension check and error wrapping (with a stub model)
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from studyrag.application.lazy_handle import LazyHandle
from studyrag.exceptions import EmbeddingError, EmptyInputError
from studyrag.infrastructure.services import (
    FakeEmbedder,
    SentenceTransformerEmbedder,
)
from studyrag.infrastructure.services.strategies import BoundedParallelStrategy


def _cosine(a, b) -> float:
    a, b = np.asarray(a), np.asarray(b)
    return float(a @ b / (np.linalg.norm(a) * np.linalg.norm(b)))


@pytest.mark.unit
class TestFakeEmbedder:
    def test_dimension_and_unit_norm(self, fake_embedder):
        vector = fake_embedder.embed("Cells divide by mitosis.")

        assert len(vector) == 384
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    def test_deterministic(self, fake_embedder):
        """R: Should return the same vector for the same input across instances."""
        assert fake_embedder.embed("same text") == FakeEmbedder().embed("same text")

    def test_shared_wording_scores_higher(self, fake_embedder):
        query = fake_embedder.embed("mitochondria produce energy")
        related = fake_embedder.embed("The mitochondria produce energy for the cell")
        unrelated = fake_embedder.embed("Roman aqueducts carried water")

        assert _cosine(query, related) > _cosine(query, unrelated)

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_input_raises(self, fake_embedder, text):
        with pytest.raises(EmptyInputError):
            fake_embedder.embed(text)

    def test_truncates_to_max_chars(self):
        embedder = FakeEmbedder(max_chars=10)

        assert embedder.embed("a" * 10 + "b" * 50) == embedder.embed("a" * 10)

    def test_embed_many_preserves_order(self):
        embedder = FakeEmbedder(strategy=BoundedParallelStrategy(max_workers=3))
        texts = ["alpha", "beta", "gamma", "delta"]

        vectors = embedder.embed_many(texts)

        assert vectors == [embedder.embed(t) for t in texts]

    def test_embed_many_surfaces_original_error(self, fake_embedder):
        """R: Should raise the item error itself, without the wrapper in its chain."""
        with pytest.raises(EmptyInputError) as exc_info:
            fake_embedder.embed_many(["fine", "  "])

        assert exc_info.value.__cause__ is None
        assert exc_info.value.__suppress_context__ is True


def _stub_model(dimension: int = 384) -> MagicMock:
    model = MagicMock()
    model.encode.side_effect = lambda text, **kwargs: np.ones(dimension) / np.sqrt(dimension)
    return model


@pytest.mark.unit
class TestSentenceTransformerEmbedder:
    def test_model_loads_lazily_once(self):
        """R: Should build the model on first embed, then reuse it."""
        # Arrange
        model = _stub_model()
        factory = MagicMock(return_value=model)
        embedder = SentenceTransformerEmbedder(
            model_handle=LazyHandle(factory, name="stub")
        )
        assert embedder.is_loaded is False

        # Act
        embedder.embed("first")
        embedder.embed("second")

        # Assert
        factory.assert_called_once()
        assert embedder.is_loaded is True

    def test_encode_called_truncated_and_normalized(self):
        model = _stub_model()
        embedder = SentenceTransformerEmbedder(
            max_chars=5, model_handle=LazyHandle(lambda: model, name="stub")
        )

        vector = embedder.embed("abcdefghij")

        args, kwargs = model.encode.call_args
        assert args[0] == "abcde"
        assert kwargs["normalize_embeddings"] is True
        assert len(vector) == 384
        assert all(isinstance(v, float) for v in vector)

    def test_blank_input_raises_without_loading(self):
        factory = MagicMock()
        embedder = SentenceTransformerEmbedder(
            model_handle=LazyHandle(factory, name="stub")
        )

        with pytest.raises(EmptyInputError):
            embedder.embed("   ")
        factory.assert_not_called()

    def test_load_failure_becomes_embedding_error(self):
        def factory():
            raise OSError("model not found")

        embedder = SentenceTransformerEmbedder(
            model_handle=LazyHandle(factory, name="stub")
        )

        with pytest.raises(EmbeddingError) as exc_info:
            embedder.embed("text")
        assert isinstance(exc_info.value.original_error, OSError)

    def test_dimension_mismatch_raises(self):
        model = _stub_model(dimension=768)
        embedder = SentenceTransformerEmbedder(
            model_handle=LazyHandle(lambda: model, name="stub")
        )

        with pytest.raises(EmbeddingError, match="768"):
            embedder.embed("text")

    def test_embed_many_in_order(self):
        model = MagicMock()
        model.encode.side_effect = lambda text, **kwargs: np.full(384, float(len(text)))
        embedder = SentenceTransformerEmbedder(
            model_handle=LazyHandle(lambda: model, name="stub")
        )

        vectors = embedder.embed_many(["a", "bb", "ccc"])

        assert [v[0] for v in vectors] == [1.0, 2.0, 3.0]
