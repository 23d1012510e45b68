"""Application metrics (Prometheus client).

All metrics are declared here so there is one inventory of what the
service measures.  The HTTP trio is fed by MetricsMiddleware; the rest are
incremented by the service that owns the behavior.

Everything interesting this service does is an outbound call to Canva, so
the application counters are labelled by outcome ("ok" / "error") rather
than by latency bucket.  Canva's own dashboards cover their side.
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
    # Most routes wait on Canva; the tail up to 15s is the design timeout.
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Outbound calls
# ---------------------------------------------------------------------------

OAUTH_EXCHANGES = Counter(
    "oauth_token_exchanges_total",
    "Token endpoint calls to Canva by grant type and outcome",
    ["grant_type", "result"],  # authorization_code|refresh_token, ok|error
)

DESIGN_CREATIONS = Counter(
    "design_creations_total",
    "Design creation requests forwarded to Canva by outcome",
    ["result"],
)

WORKFLOW_TRIGGERS = Counter(
    "workflow_triggers_total",
    "Durable-workflow runs requested by outcome",
    ["result"],
)
