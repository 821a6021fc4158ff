"""
Prometheus metrics for the search API.

HTTP traffic is labelled by route template rather than raw URL, so query
strings and unknown paths cannot blow up label cardinality. The search
gateway, query cache and index lifecycle publish their own series through
the `record_*` helpers below.
"""

import time

from fastapi import APIRouter, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

router = APIRouter()

UNMATCHED_ROUTE = "unmatched"

# --- HTTP ---

HTTP_REQUESTS = Counter(
    "http_requests_total", "HTTP requests served", ["method", "route", "status"]
)
HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "route"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
HTTP_IN_FLIGHT = Gauge("http_requests_in_flight", "HTTP requests being served")
HTTP_THROTTLED = Counter(
    "http_requests_throttled_total", "Requests rejected by the rate limiter"
)

# --- Search gateway ---

SEARCH_COUNT = Counter(
    "search_requests_total",
    "Search gateway requests",
    ["action"],  # gateway action, or "invalid"
)
SEARCH_LATENCY = Histogram(
    "search_duration_seconds",
    "Time spent inside a search gateway action",
    ["action"],
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0],
)
CACHE_EVENTS = Counter(
    "search_cache_events_total", "Query cache lookups", ["result"]
)

# --- Index lifecycle ---

INDEX_DOCUMENTS = Gauge(
    "search_index_documents", "Documents in the live search index"
)
INDEX_REBUILDS = Counter(
    "search_index_rebuilds_total",
    "Index loads and builds",
    ["outcome"],  # loaded | built | failed
)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time every request except metric scrapes."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path.endswith("/metrics"):
            return await call_next(request)

        HTTP_IN_FLIGHT.inc()
        started_at = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            HTTP_IN_FLIGHT.dec()

        route = _route_label(request)
        HTTP_REQUESTS.labels(request.method, route, response.status_code).inc()
        HTTP_LATENCY.labels(request.method, route).observe(
            time.perf_counter() - started_at
        )
        if response.status_code == 429:
            HTTP_THROTTLED.inc()
        return response


@router.get("/metrics")
async def metrics():
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def record_search(action: str, duration: float):
    SEARCH_COUNT.labels(action=action).inc()
    SEARCH_LATENCY.labels(action=action).observe(duration)


def record_cache_event(hit: bool):
    CACHE_EVENTS.labels(result="hit" if hit else "miss").inc()


def record_index_swap(outcome: str, documents: int | None = None):
    """Record an index build/load attempt and, on success, the live size."""
    INDEX_REBUILDS.labels(outcome=outcome).inc()
    if documents is not None:
        INDEX_DOCUMENTS.set(documents)
