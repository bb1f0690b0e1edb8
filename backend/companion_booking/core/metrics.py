"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking lifecycle metrics
booking_transitions = Counter(
    'booking_transitions_total',
    'Booking lifecycle transition attempts',
    ['action', 'result']  # result: success or the error code
)

booking_transition_latency = Histogram(
    'booking_transition_latency_seconds',
    'Latency of booking transition operations',
    ['action'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

stale_version_conflicts = Counter(
    'booking_stale_version_conflicts_total',
    'Conditional booking updates lost to a concurrent writer'
)

schedule_claim_conflicts = Counter(
    'companion_schedule_claim_conflicts_total',
    'Accepts that found the companion schedule bumped by a concurrent accept'
)

notification_failures = Counter(
    'notification_failures_total',
    'Notifications that could not be stored',
    ['type']
)

# Chat metrics
chat_reachability_checks = Counter(
    'chat_reachability_checks_total',
    'Chat reachability evaluations',
    ['reachable']
)

chat_messages = Counter(
    'chat_messages_total',
    'Chat message send attempts',
    ['result']  # sent, rejected
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_available = Gauge(
    'redis_available',
    'Redis availability (1=connected, 0=unavailable)'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_transition(action: str, result: str):
    """Record a booking transition attempt."""
    booking_transitions.labels(action=action, result=result).inc()


def record_reachability(reachable: bool):
    chat_reachability_checks.labels(reachable="true" if reachable else "false").inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
