"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP story_market_booking_attempts_total Total booking attempts by flow and outcome
        # TYPE story_market_booking_attempts_total counter
        story_market_booking_attempts_total{flow="host_immediate",outcome="created"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Metrics in Prometheus text exposition format, for scraping.

    Returns:
        Response: Metrics with Content-Type text/plain
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
