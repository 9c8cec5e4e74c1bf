from .fake_completer import FakeCompleter
from .fake_embedding_service import FakeEmbedder
from .google_completer import GoogleCompleter
from .sentence_transformer_embedder import SentenceTransformerEmbedder
from .strategies import (
    BoundedParallelStrategy,
    ExecutionStrategy,
    ItemFailure,
    SequentialStrategy,
    strategy_for,
)

__all__ = [
    "BoundedParallelStrategy",
    "ExecutionStrategy",
    "FakeCompleter",
    "FakeEmbedder",
    "GoogleCompleter",
    "ItemFailure",
    "SentenceTransformerEmbedder",
    "SequentialStrategy",
    "strategy_for",
]
