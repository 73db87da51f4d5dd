"""Prometheus instrumentation for every HTTP request.

The endpoint label is the matched route template when there is one
(/api/badge/keys/{key_id}), not the raw path.  Key ids come from the
outside world; labelling by raw path would let any client mint new
time series.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION


def _endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if path:
        return path
    if request.scope.get("endpoint") is None:
        return "unmatched"
    return request.url.path


def _observe(request: Request, status_code: str, seconds: float) -> None:
    endpoint = _endpoint_label(request)
    REQUEST_COUNT.labels(
        method=request.method, endpoint=endpoint, status_code=status_code
    ).inc()
    REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(seconds)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Scrapes are not traffic.
        if request.url.path == "/metrics":
            return await call_next(request)

        # Unhandled exceptions become a 500 further out.
        status_code = "500"
        started = time.monotonic()
        with ACTIVE_REQUESTS.track_inprogress():
            try:
                response = await call_next(request)
                status_code = str(response.status_code)
                return response
            finally:
                _observe(request, status_code, time.monotonic() - started)
