"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "agk_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "agk_ingest_duration_seconds",
    "Embed and replace duration per table",
    labelnames=("table",),
    registry=REGISTRY,
)

QUERY_LATENCY = Histogram(
    "agk_query_latency_seconds",
    "Federated query latency",
    registry=REGISTRY,
)

QUERY_DEGRADED = Counter(
    "agk_query_degraded_total",
    "Table queries that failed and were served as empty results",
    labelnames=("table",),
    registry=REGISTRY,
)

TABLE_ROWS = Gauge(
    "agk_table_rows",
    "Number of chunks stored per table",
    labelnames=("table",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "INGEST_DURATION",
    "QUERY_LATENCY",
    "QUERY_DEGRADED",
    "TABLE_ROWS",
    "metrics_response",
]
