"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - auth_failures_total{reason}
    - authz_denials_total{resource, operation}
    - audit_writes_total{action}, audit_write_failures_total{action, entity_type}
    - db_sessions_total{outcome}, db_sessions_in_use
    """
    metrics_output = generate_latest()
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
