"""Prometheus metrics for the CRM service.

Provides:
- MetricsMiddleware: HTTP request count and latency per method/endpoint
- Domain counters for recommendations, searches and assistant intents
- get_metrics_response(): Prometheus exposition for the /metrics route
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from prometheus_client import REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.crm.recommendations.schemas import Recommendation

# ── HTTP Metrics ─────────────────────────────────────────────────────────────

http_requests_total = Counter(
    "crm_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "crm_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

# ── Domain Metrics ───────────────────────────────────────────────────────────

recommendations_served_total = Counter(
    "crm_recommendations_served_total",
    "Deal recommendations returned to clients",
    ["action_type", "priority"],
)

search_queries_total = Counter(
    "crm_search_queries_total",
    "Relevance search queries executed",
    ["outcome"],  # hit | miss
)

assistant_messages_total = Counter(
    "crm_assistant_messages_total",
    "Assistant messages answered, by matched intent",
    ["intent"],
)


def record_recommendations(recommendations: Iterable[Recommendation]) -> None:
    for rec in recommendations:
        recommendations_served_total.labels(
            action_type=rec.action_type.value,
            priority=rec.priority.value,
        ).inc()


def record_search(result_count: int) -> None:
    search_queries_total.labels(outcome="hit" if result_count else "miss").inc()


def record_assistant_intent(intent: str) -> None:
    assistant_messages_total.labels(intent=intent).inc()


# ── Metrics Middleware ───────────────────────────────────────────────────────


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request count and duration for every HTTP request.

    Skips the /metrics endpoint itself to avoid self-referential counting.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        endpoint = request.url.path
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).inc()
        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response


def get_metrics_response() -> Response:
    """Generate Prometheus exposition format response."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
