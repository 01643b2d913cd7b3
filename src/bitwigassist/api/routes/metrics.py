"""Prometheus metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from bitwigassist.services.metrics import get_metrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose metrics in the Prometheus text format."""
    return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)
