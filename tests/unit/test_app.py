"""
Name: Application Tests (health, metrics, end-to-end flow)

Responsibilities:
  - Validate liveness/readiness endpoints and request correlation header
  - Validate /metrics exposition
  - Run ingest -> query end to end on fake providers and the in-memory store
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from studyrag import container
from studyrag.application.use_cases import IngestDocumentUseCase
from studyrag.domain.entities import DocumentInfo, ExtractedDocument
from studyrag.domain.services import TextExtractor
from studyrag.infrastructure.text import chunk_text, preprocess

pytestmark = pytest.mark.unit


@pytest.fixture
def client(monkeypatch, clear_caches):
    monkeypatch.setenv("FAKE_LLM", "1")
    monkeypatch.setenv("FAKE_EMBEDDINGS", "1")
    monkeypatch.setenv("STORE_BACKEND", "memory")

    from studyrag.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _study_text() -> str:
    sentences = [
        f"Sentence {i} explains how topic {i * 7 % 13} relates to lesson {i}."
        for i in range(60)
    ]
    return " ".join(sentences)[:2000].rstrip()


def test_liveness(client):
    for path in ("/", "/health"):
        response = client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"] == "studyrag"
        assert "timestamp" in body


def test_readiness_checks_store(client):
    response = client.get("/healthz", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 200
    assert response.json() == {"ok": True, "db": "connected", "request_id": "req-123"}
    assert response.headers["X-Request-Id"] == "req-123"


def test_readiness_reports_unavailable_store(client, monkeypatch):
    store = Mock()
    store.ping.side_effect = RuntimeError("connection refused")
    monkeypatch.setattr("studyrag.main.get_chunk_store", lambda: store)

    response = client.get("/healthz")

    assert response.status_code == 503
    assert response.json()["db"] == "disconnected"


def test_metrics_exposed(client):
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "studyrag_requests_total" in response.text


def test_ingest_then_query_end_to_end(client):
    """R: Should rank the chunk matching the question first."""
    # Arrange: ingest a 2000-character document through the real pipeline
    from studyrag.main import app

    text = _study_text()
    extractor = Mock(spec=TextExtractor)
    extractor.extract.return_value = ExtractedDocument(
        text=text, page_count=3, info=DocumentInfo()
    )
    use_case = IngestDocumentUseCase(
        extractor=extractor,
        chunker=container.get_chunker(),
        embedder=container.get_embedder(),
        store=container.get_chunk_store(),
    )
    app.dependency_overrides[container.get_ingest_document_use_case] = lambda: use_case

    ingest = client.post(
        "/api/ingest",
        files={"file": ("lessons.pdf", b"%PDF-1.4 lessons", "application/pdf")},
    )
    assert ingest.status_code == 200
    assert ingest.json()["chunkCount"] == 5

    # Act: ask with the exact content of the third chunk
    third_chunk = chunk_text(preprocess(text), chunk_size=500, overlap=50)[2].content
    response = client.post("/api/query", json={"question": third_chunk})

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["hasContext"] is True
    assert len(body["sources"]) == 5
    assert body["sources"][0]["metadata"]["chunkIndex"] == 2
    assert body["answer"].startswith("[fake answer ")


def test_query_on_empty_store_returns_fallback(client):
    from studyrag.application.answer_composer import FALLBACK_ANSWER

    response = client.post("/api/query", json={"question": "Anything?"})

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == FALLBACK_ANSWER
    assert body["sources"] == []
    assert body["hasContext"] is False
