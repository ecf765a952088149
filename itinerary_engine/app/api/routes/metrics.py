"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes the engine metrics:
    - engine_stage_latency_ms{stage}
    - conflicts_detected_total{type, severity}
    - travel_estimate_fallbacks_total{reason}
    - availability_checks_total{status}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
