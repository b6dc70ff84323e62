"""Prometheus metrics for the gateway."""

from prometheus_client import Counter, Histogram

GATEWAY_REQUESTS = Counter(
    "gateway_requests_total",
    "Total completion requests dispatched to providers",
    ["provider", "mode", "status"],
)

GATEWAY_REQUEST_DURATION = Histogram(
    "gateway_request_duration_seconds",
    "Provider round-trip duration in seconds",
    ["provider", "mode"],
    buckets=[0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300],
)

TRANSPORT_RETRIES = Counter(
    "transport_retries_total",
    "HTTP retries performed by the transport",
    ["provider", "reason"],
)
