"""Prometheus metric inventory for both services.

Every metric the services expose is declared here; the modules that own
the behavior import and increment them.  The two FastAPI apps may run
in the same process (tests, the demo script), so they share the default
registry and the HTTP metrics are labelled by path only.

  COUNTER  : only goes up.  rate() over it gives per-second throughput.
  GAUGE    : goes up and down.  A snapshot (in-flight requests).
  HISTOGRAM: bucketed observations; Prometheus derives percentiles.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # A lookup or insert against the store is one round trip; anything
    # past 1s means the store is struggling or timing out.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Credential metrics
# ---------------------------------------------------------------------------

CREDENTIAL_ISSUANCE = Counter(
    "credential_issuance_total",
    "Issuance attempts by outcome",
    ["outcome"],  # issued | already_issued | race | error
)

CREDENTIAL_VERIFICATION = Counter(
    "credential_verification_total",
    "Verification lookups by result",
    ["result"],  # found | not_found | error
)
