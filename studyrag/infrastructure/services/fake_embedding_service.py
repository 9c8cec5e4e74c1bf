"""
Name: Fake Embedder (Deterministic Test Double)

Responsibilities:
  - Provide deterministic, unit-normalized embeddings without a model
  - Keep the production dimension (384) so stores accept the vectors
  - Score texts that share wording as similar (hashed character trigrams)

Collaborators:
  - domain.services.Embedder (contract)
  - strategies: embed_many loop

Constraints:
  - No IO, no network, no model download
  - Same input -> same vector, bit for bit

Notes:
  - Trigram counts are hashed into buckets with blake2b (stable across runs,
    unlike hash())
  - Not semantic; only lexical overlap is captured
"""

from __future__ import annotations

import hashlib
from typing import List, Sequence

import numpy as np

from ...exceptions import EmptyInputError
from ...logger import logger
from .strategies import ExecutionStrategy, ItemFailure, SequentialStrategy

DEFAULT_EMBEDDING_DIMENSION = 384
DEFAULT_MAX_CHARS = 2000


def _bucket(gram: str, dimension: int) -> int:
    digest = hashlib.blake2b(gram.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dimension


class FakeEmbedder:
    """
    R: Deterministic Embedder for tests/CI and FAKE_EMBEDDINGS=1.
    """

    MODEL_ID = "fake-trigram-v1"

    def __init__(
        self,
        *,
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        max_chars: int = DEFAULT_MAX_CHARS,
        strategy: ExecutionStrategy | None = None,
    ) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be > 0")
        self._dimension = dimension
        self._max_chars = max_chars
        self._strategy = strategy or SequentialStrategy()
        logger.debug(
            "FakeEmbedder initialized",
            extra={"dimension": dimension, "model_id": self.MODEL_ID},
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_id(self) -> str:
        return self.MODEL_ID

    def embed(self, text: str) -> List[float]:
        """
        R: Hash character trigrams of the (truncated) text into a unit vector.

        Raises:
            EmptyInputError: If text is blank
        """
        if not text or not text.strip():
            raise EmptyInputError("Cannot embed empty text")

        padded = f" {text[: self._max_chars]} "
        vector = np.zeros(self._dimension, dtype=np.float64)
        for i in range(len(padded) - 2):
            vector[_bucket(padded[i : i + 3], self._dimension)] += 1.0

        # R: Padding guarantees at least one trigram, so the norm is > 0
        vector /= np.linalg.norm(vector)
        return vector.tolist()

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """R: embed() over each text, in order."""
        try:
            return self._strategy.map(lambda _i, text: self.embed(text), texts)
        except ItemFailure as failure:
            raise failure.error from None
