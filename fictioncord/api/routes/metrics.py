"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from fictioncord.api.dependencies.story_session import get_metrics_collector
from fictioncord.infrastructure.monitoring.session_metrics import (
    SessionMetricsCollector,
)

router = APIRouter(prefix="/v1", tags=["metrics"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    response_class=Response,
    responses={
        200: {
            "description": "Metrics in Prometheus format",
            "content": {"text/plain": {}},
        }
    },
)
async def get_metrics(
    collector: SessionMetricsCollector = Depends(get_metrics_collector),
) -> Response:
    """Get story session metrics in Prometheus exposition format."""
    return Response(
        content=generate_latest(collector.get_registry()),
        media_type=CONTENT_TYPE_LATEST,
    )
