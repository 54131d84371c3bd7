"""Prometheus metrics middleware: instruments every HTTP request.

Per request: bump the in-flight gauge, time the handler, then record the
request count (method/path/status) and the duration histogram.  Handler
exceptions are recorded as 500 before being re-raised.

/metrics itself is skipped so scrapes don't inflate the request count.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from credential_service.core.metrics import (
    ACTIVE_REQUESTS,
    REQUEST_COUNT,
    REQUEST_DURATION,
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code = "500"

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method, endpoint=path, status_code=status_code
            ).inc()
            REQUEST_DURATION.labels(method=request.method, endpoint=path).observe(
                time.monotonic() - start
            )

        return response
