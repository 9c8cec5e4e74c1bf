"""
Name: Observability Tests

Responsibilities:
  - Validate StageTimings output keys
  - Validate JSON log formatting (context enrichment, secret redaction)
  - Validate metric label normalization
"""

import json
import logging

import pytest

from studyrag.context import bind_request_context, clear_context
from studyrag.logger import JSONFormatter
from studyrag.metrics import (
    _normalize_endpoint,
    _status_bucket,
    get_metrics_response,
    record_query_stage_metrics,
)
from studyrag.timing import StageTimings


@pytest.mark.unit
class TestTiming:
    def test_stage_timings_to_dict(self):
        timings = StageTimings()

        with timings.measure("embedding"):
            pass
        with timings.measure("search"):
            pass

        data = timings.to_dict()
        assert set(data) == {"embedding_ms", "search_ms", "total_ms"}
        assert all(value >= 0.0 for value in data.values())
        assert "llm_ms" not in data

    def test_stage_recorded_when_block_raises(self):
        timings = StageTimings()

        with pytest.raises(ValueError):
            with timings.measure("storage"):
                raise ValueError("insert failed")

        assert "storage_ms" in timings.to_dict()


@pytest.mark.unit
class TestJSONFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="studyrag",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="query answered",
            args=(),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_includes_context_and_extras(self):
        bind_request_context("req-42", "POST", "/api/query")
        try:
            payload = json.loads(JSONFormatter().format(self._record(top_k=5)))
        finally:
            clear_context()

        assert payload["message"] == "query answered"
        assert payload["request_id"] == "req-42"
        assert payload["path"] == "/api/query"
        assert payload["top_k"] == 5

    def test_redacts_sensitive_keys(self):
        payload = json.loads(
            JSONFormatter().format(self._record(google_api_key="AIza-secret", chunks=3))
        )

        assert "google_api_key" not in payload
        assert payload["chunks"] == 3


@pytest.mark.unit
class TestMetrics:
    def test_normalize_endpoint_replaces_ids(self):
        path = "/api/documents/123e4567-e89b-12d3-a456-426614174000/chunks/7"

        assert _normalize_endpoint(path) == "/api/documents/{id}/chunks/{id}"

    @pytest.mark.parametrize(
        "code,bucket", [(200, "2xx"), (422, "4xx"), (503, "5xx"), (302, "other")]
    )
    def test_status_bucket(self, code, bucket):
        assert _status_bucket(code) == bucket

    def test_stage_metrics_exposed(self):
        record_query_stage_metrics({"embedding_ms": 10.0, "search_ms": 2.0, "llm_ms": 300.0})

        body, content_type = get_metrics_response()

        assert b"studyrag_query_stage_latency_seconds" in body
        assert content_type.startswith("text/plain")
