"""
Metrics endpoints.

- /api/metrics: JSON snapshot of the ingestion counters
- /metrics: Prometheus text format for scraping
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..models import MetricsResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/api/metrics",
    response_model=MetricsResponse,
    summary="Ingestion counters",
)
async def get_metrics(request: Request) -> Dict[str, Any]:
    """Counters for the process lifetime: total, saved, skipped, uptime."""
    return request.app.state.metrics.snapshot()


@router.get("/metrics", summary="Prometheus metrics", include_in_schema=False)
async def get_prometheus_metrics(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Exposes the same counters plus write errors and rejection reasons.
    """
    metrics_data = generate_latest(request.app.state.metrics.registry)
    logger.debug("Metrics scraped successfully", size_bytes=len(metrics_data))

    return Response(
        content=metrics_data,
        media_type=CONTENT_TYPE_LATEST,
    )
