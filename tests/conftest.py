"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Provide reusable test fixtures
  - Mock external dependencies (DB, Gemini, embedding model)
  - Configure test environment (fake providers, in-memory store)

Collaborators:
  - pytest: Test framework
  - unittest.mock: Mocking library
  - studyrag.domain: Domain entities and protocols

Notes:
  - Fixtures are auto-discovered by pytest
  - Settings never read a local .env during tests
"""

import os
from typing import List
from unittest.mock import Mock
from uuid import uuid4

import pytest

os.environ.setdefault("FAKE_LLM", "1")
os.environ.setdefault("FAKE_EMBEDDINGS", "1")
os.environ.setdefault("STORE_BACKEND", "memory")

from studyrag import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from studyrag.domain.entities import (  # noqa: E402
    Chunk,
    Completion,
    RetrievedChunk,
    TokenUsage,
)
from studyrag.domain.services import Completer, Embedder  # noqa: E402
from studyrag.infrastructure.repositories import InMemoryChunkStore  # noqa: E402
from studyrag.infrastructure.services import FakeEmbedder  # noqa: E402


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Tests requiring a live PostgreSQL database"
    )


def make_chunk(content: str, embedding: List[float], index: int = 0) -> Chunk:
    return Chunk(
        id=uuid4(),
        document_id=uuid4(),
        content=content,
        embedding=embedding,
        index=index,
        char_count=len(content),
    )


# ============================================================================
# Settings / container isolation
# ============================================================================


@pytest.fixture
def clear_caches():
    """R: Reset settings and container singletons around a test."""
    from studyrag import container

    def _clear():
        app_config.get_settings.cache_clear()
        container.get_chunk_store.cache_clear()
        container.get_embedder.cache_clear()
        container.get_completer.cache_clear()
        container.get_text_extractor.cache_clear()

    _clear()
    yield
    _clear()


# ============================================================================
# Domain Fixtures
# ============================================================================


@pytest.fixture
def sample_retrieved() -> List[RetrievedChunk]:
    """R: Two ranked chunks (0.9 and 0.5 cosine)."""
    return [
        RetrievedChunk(
            chunk=make_chunk("Photosynthesis converts light into energy.", [1.0, 0.0], 0),
            similarity=0.9,
            similarity_percent=90.0,
        ),
        RetrievedChunk(
            chunk=make_chunk("Chlorophyll absorbs red and blue light.", [0.0, 1.0], 1),
            similarity=0.5,
            similarity_percent=50.0,
        ),
    ]


# ============================================================================
# Mock Service Fixtures
# ============================================================================


@pytest.fixture
def mock_embedder() -> Mock:
    """
    R: Create a mock Embedder.

    Pre-configured behaviors:
    - embed() returns a 384-dimensional vector
    - embed_many() returns one vector per text
    """
    mock = Mock(spec=Embedder)
    mock.dimension = 384
    mock.embed.return_value = [0.1] * 384
    mock.embed_many.side_effect = lambda texts: [[0.1] * 384 for _ in texts]
    return mock


@pytest.fixture
def mock_completer() -> Mock:
    """R: Create a mock Completer returning a fixed prose answer."""
    mock = Mock(spec=Completer)
    mock.complete.return_value = Completion(
        text="Plants turn light into chemical energy.",
        usage=TokenUsage(prompt_tokens=120, completion_tokens=8, total_tokens=128),
    )
    return mock


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def memory_store() -> InMemoryChunkStore:
    return InMemoryChunkStore(dimension=384)
