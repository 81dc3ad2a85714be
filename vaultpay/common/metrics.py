"""Prometheus metric definitions for the gateway."""

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
upstream_requests_total = Counter(
    "upstream_requests_total",
    "Calls made to the payment processor API",
    ["operation", "outcome"],
)
upstream_latency_seconds = Histogram(
    "upstream_latency_seconds",
    "Payment processor call latency seconds",
    ["operation"],
)
oneclick_outcomes_total = Counter(
    "oneclick_outcomes_total",
    "One-click charge outcomes (created, replayed, recovered, failed)",
    ["outcome"],
)
idempotency_records = Gauge(
    "idempotency_records",
    "Records currently held by the in-process idempotency store",
)
idempotency_swept_total = Counter(
    "idempotency_swept_total",
    "Idempotency records removed by the expiry sweep",
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
