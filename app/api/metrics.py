"""Prometheus scrape endpoint for realtime and notification metrics."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from app.monitoring.registry import registry


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=PlainTextResponse)
def export_metrics() -> PlainTextResponse:
    return PlainTextResponse(content=registry.render(), media_type="text/plain; version=0.0.4")
