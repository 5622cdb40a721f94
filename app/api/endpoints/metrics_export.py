"""Metrics endpoints.

``/metrics`` is the Prometheus scrape target; ``/api/v1/metrics/snapshot``
returns the in-process named counters (record operation outcomes, coercion
failures, health probes) as plain JSON.
"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.core.observability.metrics import snapshot_named

router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/api/v1/metrics/snapshot")
def metrics_snapshot():
    return {"counters": snapshot_named()}
