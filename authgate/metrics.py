# authgate/metrics.py

"""
Prometheus metrics for authgate.

- `auth_attempts_total{strategy,outcome}`: one increment per strategy run,
  outcome being success, fail or error
- `http_requests_total` / `http_request_duration_seconds`: per route

`render_metrics()` serves the text exposition, aggregating worker processes
when PROMETHEUS_MULTIPROC_DIR is set.
"""

import os
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


AUTH_ATTEMPTS = Counter(
    "auth_attempts_total",
    "Authentication attempts by strategy and outcome",
    ["strategy", "outcome"],
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "HTTP requests by method, route and status",
    ["method", "endpoint", "http_status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency by method and route",
    ["method", "endpoint"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path

        REQUEST_LATENCY.labels(method=request.method, endpoint=path).observe(time.perf_counter() - start)
        REQUEST_COUNT.labels(
            method=request.method, endpoint=path, http_status=str(response.status_code)
        ).inc()
        return response


def render_metrics() -> Response:
    mp_dir = os.getenv("PROMETHEUS_MULTIPROC_DIR")
    if mp_dir and os.path.isdir(mp_dir):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        data = generate_latest(registry)
    else:
        data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
