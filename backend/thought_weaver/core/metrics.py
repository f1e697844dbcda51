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

EMBEDDING_SYNC_TOTAL = Counter(
    "tw_embedding_sync_total",
    "Embedding synchronization outcomes",
    labelnames=("document_type", "outcome"),
    registry=REGISTRY,
)

EMBEDDING_SYNC_DURATION = Histogram(
    "tw_embedding_sync_duration_seconds",
    "Duration of embedding synchronization runs that reached the embed step",
    labelnames=("document_type",),
    registry=REGISTRY,
)

INSIGHT_REQUESTS = Counter(
    "tw_insight_requests_total",
    "Insight requests by outcome",
    labelnames=("outcome",),
    registry=REGISTRY,
)

UPSTREAM_LATENCY = Histogram(
    "tw_upstream_latency_seconds",
    "Latency of calls to external services",
    labelnames=("service", "operation"),
    registry=REGISTRY,
)

RATE_LIMIT_TRACKED_USERS = Gauge(
    "tw_rate_limit_tracked_users",
    "Users currently tracked by the insight rate limiter",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "EMBEDDING_SYNC_TOTAL",
    "EMBEDDING_SYNC_DURATION",
    "INSIGHT_REQUESTS",
    "UPSTREAM_LATENCY",
    "RATE_LIMIT_TRACKED_USERS",
    "metrics_response",
]
