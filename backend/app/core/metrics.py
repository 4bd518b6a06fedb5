"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Event lookup metrics
event_lookups = Counter(
    'event_lookups_total',
    'Event lookups by slug',
    ['result']  # found, not_found, invalid, error
)

# Database metrics
db_connection_attempts = Counter(
    'db_connection_attempts_total',
    'MongoDB connection attempts',
    ['result']  # success, failure, misconfigured
)

# Booking metrics
booking_writes = Counter(
    'booking_writes_total',
    'Booking create/update attempts',
    ['operation', 'result']  # create/update, success/invalid_reference/invalid_fields
)

# HTTP metrics
request_latency = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'status_code'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_event_lookup(result: str):
    """Record event lookup outcome. Result: found, not_found, invalid, error"""
    event_lookups.labels(result=result).inc()


def record_connection_attempt(result: str):
    """Record connection attempt. Result: success, failure, misconfigured"""
    db_connection_attempts.labels(result=result).inc()


def record_booking_write(operation: str, result: str):
    booking_writes.labels(operation=operation, result=result).inc()


def observe_request(method: str, status_code: int, duration_seconds: float):
    request_latency.labels(method=method, status_code=str(status_code)).observe(duration_seconds)
