"""Request context middleware: request IDs and one summary line per request.

Concurrent issuances interleave in the log; the request ID ties each
line back to its request:

  INFO  [req-abc] Credential cred-1 issued by worker-3
  INFO  [req-xyz] Credential cred-1 issued concurrently by another worker

The ID lives in a ContextVar, not a thread-local: requests share the
event loop thread, but each asyncio task sees its own context copy.
A caller-supplied X-Request-ID is honoured so a client retry loop can
correlate its attempts; otherwise a UUID4 is generated.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Attach the current request ID to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def install_request_context_filter() -> None:
    """Install on the root logger's handlers once; safe to call repeatedly.

    Filters on a logger only run for records logged *through that
    logger*, so the filter goes on the handlers, which see everything.
    """
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, _RequestContextFilter) for f in handler.filters):
            handler.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, time the request, log a summary, echo the ID."""

    def __init__(self, app: ASGIApp, service: str = "-") -> None:
        super().__init__(app)
        self._service = service

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(req_id)

        try:
            start = time.monotonic()
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)

            logger.info(
                "%s %s → %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "request_id": req_id,
                    "service": self._service,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = req_id
        return response
