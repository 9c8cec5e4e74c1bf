"""
Name: Prometheus Metrics

Responsibilities:
  - HTTP request counter and latency histogram
  - Per-stage latency histograms for the ingest and query pipelines
  - Serve the exposition payload for GET /metrics

Collaborators:
  - middleware.py: record_request_metrics
  - application/use_cases: record_*_stage_metrics with StageTimings.to_dict()
  - main.py: get_metrics_response

Constraints:
  - Labels stay low cardinality; ids in paths collapse to "{id}"
  - Own CollectorRegistry, so tests and reloads never hit duplicate series
"""

import re
from typing import Dict, Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

INGEST_STAGES = ("extraction", "chunking", "embedding", "storage")
QUERY_STAGES = ("embedding", "search", "llm")

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
_NUMERIC_SEGMENT_RE = re.compile(r"/\d+")

_registry = CollectorRegistry()

_requests_total = Counter(
    "studyrag_requests_total",
    "HTTP requests by endpoint, method and status class",
    ["endpoint", "method", "status"],
    registry=_registry,
)
_request_latency = Histogram(
    "studyrag_request_latency_seconds",
    "HTTP request duration",
    ["endpoint", "method"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=_registry,
)
_stage_histograms: Dict[str, Histogram] = {
    "ingest": Histogram(
        "studyrag_ingest_stage_latency_seconds",
        "Document ingestion duration per stage",
        ["stage"],
        # R: PDF extraction and batch embedding can take tens of seconds
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
        registry=_registry,
    ),
    "query": Histogram(
        "studyrag_query_stage_latency_seconds",
        "Question answering duration per stage",
        ["stage"],
        buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        registry=_registry,
    ),
}


def _normalize_endpoint(path: str) -> str:
    return _NUMERIC_SEGMENT_RE.sub("/{id}", _UUID_RE.sub("{id}", path))


def _status_bucket(code: int) -> str:
    if code // 100 in (2, 4, 5):
        return f"{code // 100}xx"
    return "other"


def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    endpoint = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=endpoint, method=method, status=_status_bucket(status_code)
    ).inc()
    _request_latency.labels(endpoint=endpoint, method=method).observe(latency_seconds)


def _observe_stages(pipeline: str, stages: Tuple[str, ...], timings: Dict[str, float]) -> None:
    histogram = _stage_histograms[pipeline]
    for stage in stages:
        elapsed_ms = timings.get(f"{stage}_ms")
        if elapsed_ms is not None:
            histogram.labels(stage=stage).observe(elapsed_ms / 1000)


def record_ingest_stage_metrics(timings: Dict[str, float]) -> None:
    """R: Observe extraction/chunking/embedding/storage from a timings dict."""
    _observe_stages("ingest", INGEST_STAGES, timings)


def record_query_stage_metrics(timings: Dict[str, float]) -> None:
    """R: Observe embedding/search/llm from a timings dict."""
    _observe_stages("query", QUERY_STAGES, timings)


def get_metrics_response() -> Tuple[bytes, str]:
    """R: (body, content type) for the /metrics endpoint."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
