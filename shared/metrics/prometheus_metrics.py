"""Prometheus metrics definitions and helpers.

Provides the metric definitions for the user API.
"""

from typing import Callable

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class ApiMetrics:
    """HTTP and user-operation metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize API metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        # Requests served
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        # Request latency
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=registry,
        )

        # Requests in flight
        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
            registry=registry,
        )

        # Outcome of each user/order operation
        self.user_operations = Counter(
            "user_operations_total",
            "User and order operations by outcome",
            ["operation", "outcome"],
            registry=registry,
        )

    def record_operation(self, operation: str, status_code: int) -> None:
        """Count one operation, bucketing the status code into an outcome.

        Args:
            operation: Operation name, e.g. ``create_user``
            status_code: HTTP status the operation ended with
        """
        if status_code < 400:
            outcome = "success"
        elif status_code < 500:
            outcome = "client_error"
        else:
            outcome = "server_error"
        self.user_operations.labels(operation=operation, outcome=outcome).inc()


def setup_metrics(registry: CollectorRegistry = REGISTRY) -> ApiMetrics:
    """Setup and return the metric instances.

    Returns:
        ApiMetrics bound to ``registry``
    """
    return ApiMetrics(registry)


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
