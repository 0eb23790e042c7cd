"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking metrics
booking_attempts = Counter(
    "booking_attempts_total",
    "Total booking attempts",
    ["status"],  # success, conflict, rejected, error
)

booking_latency = Histogram(
    "booking_latency_seconds",
    "Booking transaction latency",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Lifecycle metrics
reservation_transitions = Counter(
    "reservation_transitions_total",
    "Reservation status transitions and edits",
    ["action"],  # confirm, reject, check_in, check_out, complete, cancel, edit
)

price_mismatches = Counter(
    "booking_price_mismatch_total",
    "Bookings whose client-quoted total differed from the server total",
)

# Notifications
notification_failures = Counter(
    "notification_failures_total",
    "Notifications that could not be delivered",
    ["kind"],
)

# HTTP metrics
http_requests = Counter(
    "http_requests_total",
    "HTTP requests by route template and status code",
    ["method", "route", "status"],
)

# Cache metrics
cache_operations = Counter(
    "cache_operations_total",
    "Cache operations",
    ["operation", "result"],  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, rejected, error"""
    booking_attempts.labels(status=status).inc()


def record_transition(action: str):
    reservation_transitions.labels(action=action).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()


def record_http_request(method: str, route: str, status: int):
    http_requests.labels(method=method, route=route, status=str(status)).inc()
