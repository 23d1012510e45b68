"""Prometheus scrape target.

Plain-text exposition format, not JSON.  The counters in core/metrics.py
(token exchanges, design creations, workflow triggers) show up here next
to the per-route HTTP metrics.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
