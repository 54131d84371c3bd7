"""Prometheus scrape endpoint.

Returns every metric from core/metrics.py in the text exposition
format, e.g.

  credential_issuance_total{outcome="issued"} 41.0
  credential_issuance_total{outcome="race"} 2.0

A steadily climbing "race" count means several callers are issuing the
same ids at once (usually a client retrying too aggressively).
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
