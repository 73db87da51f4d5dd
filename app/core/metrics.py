"""Prometheus metrics for badge-issuer.

All metrics live here so there is one inventory of what the service
measures.  Other modules import a metric and increment it at the point
of action.  Exposed at GET /metrics (app/api/metrics_endpoint.py).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP (recorded by MetricsMiddleware)
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
    # Key documents are computed in-process; anything past 100ms is odd.
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------

BADGES_ISSUED = Counter(
    "badges_issued_total",
    "Signed Open Badge credentials issued",
    ["badge_type", "algorithm"],  # speaker|organizer, RS256|EdDSA
)

BADGE_KEY_REQUESTS = Counter(
    "badge_key_requests_total",
    "Requests for the published Multikey document by outcome",
    ["result"],  # served|not_found|not_configured|invalid
)
