"""
Name: Sentence-Transformers Embedder (local model)

Responsibilities:
  - Produce unit-normalized embeddings with a local sentence-transformers model
  - Load the model once per process through a LazyHandle (single-flight)
  - Truncate over-long input to a fixed character budget

Collaborators:
  - sentence_transformers.SentenceTransformer: model runtime
  - application.lazy_handle.LazyHandle: shared model handle
  - strategies: embed_many loop (sequential by default)

Constraints:
  - all-MiniLM-L6-v2 produces 384-dimensional vectors
  - Model download/load happens on the first embed call, not at import

Notes:
  - normalize_embeddings=True makes cosine similarity a dot product
  - Load failures surface as EmbeddingError on every call until reset
"""

from __future__ import annotations

import threading
from typing import Any, List, Sequence

from ...application.lazy_handle import LazyHandle
from ...exceptions import EmbeddingError, EmptyInputError
from ...logger import logger
from .strategies import ExecutionStrategy, ItemFailure, SequentialStrategy

DEFAULT_MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"
DEFAULT_EMBEDDING_DIMENSION = 384
DEFAULT_MAX_CHARS = 2000

# R: Progress is logged every N embedded items
PROGRESS_EVERY = 10


def _load_sentence_transformer(model_name: str) -> Any:
    # R: Heavy import (torch) deferred until the model is first needed
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(model_name)


class SentenceTransformerEmbedder:
    """
    R: Embedder backed by a lazily loaded SentenceTransformer.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL_NAME,
        *,
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        max_chars: int = DEFAULT_MAX_CHARS,
        strategy: ExecutionStrategy | None = None,
        model_handle: LazyHandle | None = None,
    ) -> None:
        """
        Args:
            model_name: Hugging Face model id
            dimension: Expected output dimension (checked after encode)
            max_chars: Input truncation length
            strategy: Loop strategy for embed_many
            model_handle: Pre-built handle (tests inject a stub model here)
        """
        self._model_name = model_name
        self._dimension = dimension
        self._max_chars = max_chars
        self._strategy = strategy or SequentialStrategy()
        self._model = model_handle or LazyHandle(
            lambda: _load_sentence_transformer(model_name),
            name=f"embedding-model:{model_name}",
        )
        self._progress_lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_id(self) -> str:
        return self._model_name

    @property
    def is_loaded(self) -> bool:
        return self._model.is_ready

    def _get_model(self) -> Any:
        try:
            return self._model.get()
        except Exception as exc:
            raise EmbeddingError(
                f"Failed to load embedding model {self._model_name}: {exc}",
                original_error=exc,
            ) from exc

    def embed(self, text: str) -> List[float]:
        """
        R: Embed a single text.

        Raises:
            EmptyInputError: If text is blank
            EmbeddingError: If the model cannot be loaded or encode fails
        """
        if not text or not text.strip():
            raise EmptyInputError("Cannot embed empty text")

        model = self._get_model()
        try:
            vector = model.encode(
                text[: self._max_chars],
                normalize_embeddings=True,
                show_progress_bar=False,
            )
        except Exception as exc:
            raise EmbeddingError(f"Embedding failed: {exc}", original_error=exc) from exc

        values = [float(v) for v in vector]
        if len(values) != self._dimension:
            raise EmbeddingError(
                f"Model returned {len(values)} dimensions, expected {self._dimension}"
            )
        return values

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """
        R: Embed texts in order via the configured strategy.

        Logs progress every PROGRESS_EVERY items.
        """
        total = len(texts)
        done = 0

        def _embed_one(_index: int, text: str) -> List[float]:
            nonlocal done
            vector = self.embed(text)
            with self._progress_lock:
                done += 1
                if done % PROGRESS_EVERY == 0 or done == total:
                    logger.info(
                        "Embedding progress",
                        extra={"embedded": done, "total": total},
                    )
            return vector

        try:
            return self._strategy.map(_embed_one, texts)
        except ItemFailure as failure:
            raise failure.error from None
