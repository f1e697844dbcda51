"""Administrative routes for Thought Weaver."""

from __future__ import annotations

from fastapi import APIRouter, Response

from thought_weaver.core.metrics import metrics_response

router = APIRouter()


@router.get("/metrics", summary="Prometheus metrics")
def metrics() -> Response:
    return metrics_response()


@router.get("/health")
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
