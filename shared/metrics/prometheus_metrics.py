"""Prometheus metrics definitions and helpers.

Provides the HTTP request metrics recorded by the API middleware.
"""

from typing import Callable

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class HTTPMetrics:
    """HTTP request metrics."""

    def __init__(self, registry: CollectorRegistry) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=registry,
        )


def setup_metrics() -> HTTPMetrics:
    """Create HTTP metrics on a fresh registry.

    Each application instance owns its registry so that several apps
    (for example in tests) can coexist in one process.

    Returns:
        HTTPMetrics instance
    """
    return HTTPMetrics(CollectorRegistry())


def get_metrics_handler(metrics: HTTPMetrics) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        metrics: Metrics whose registry is exposed

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(metrics.registry)

    return metrics_handler
