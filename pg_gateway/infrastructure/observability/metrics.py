"""Prometheus metrics for monitoring approvals, gateway degradation, and API latency"""

from prometheus_client import Counter, Histogram

# Payment metrics
payment_counter = Counter(
    "pg_payment_total",
    "Payment orchestration outcomes",
    ["outcome"],  # approved | rejected | auth_failed | unavailable | not_found | inactive | no_gateway | no_policy
)

# Gateway metrics
approval_counter = Counter(
    "pg_approval_total",
    "Approval attempts per gateway",
    ["gateway", "outcome"],  # approved | AUTH | VALIDATION | PROVIDER
)

approval_latency_histogram = Histogram(
    "pg_approval_latency_seconds",
    "Approval gateway response time",
    ["gateway"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

fallback_counter = Counter(
    "pg_approval_fallbacks_total",
    "Approvals degraded from the primary gateway to the simulator",
)

mock_substitution_counter = Counter(
    "pg_approval_mock_substitutions_total",
    "Remote approvals replaced by a local mock after a transport failure",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_approval(gateway: str, outcome: str, duration_seconds: float) -> None:
    """Record one gateway call"""
    approval_counter.labels(gateway=gateway, outcome=outcome).inc()
    approval_latency_histogram.labels(gateway=gateway).observe(duration_seconds)


def record_payment(outcome: str) -> None:
    payment_counter.labels(outcome=outcome).inc()
