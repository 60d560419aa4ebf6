"""Prometheus metrics for flatdb."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all table engine metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Operation metrics
        self.operations_total = Counter(
            "flatdb_operations_total",
            "Total number of table operations",
            ["operation", "status"],  # status: success, error
            registry=self._registry,
        )

        self.operation_latency_seconds = Histogram(
            "flatdb_operation_latency_seconds",
            "Table operation latency in seconds",
            ["operation"],  # create, insert, select, update, delete
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.rows_affected_total = Counter(
            "flatdb_rows_affected_total",
            "Total rows inserted, updated or deleted",
            ["operation"],
            registry=self._registry,
        )

        self.rows_scanned_total = Counter(
            "flatdb_rows_scanned_total",
            "Total data rows read from table files",
            ["operation"],
            registry=self._registry,
        )

        # Lock metrics
        self.lock_wait_seconds = Histogram(
            "flatdb_lock_wait_seconds",
            "Time spent waiting for table locks",
            buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.lock_timeouts_total = Counter(
            "flatdb_lock_timeouts_total",
            "Total number of table lock acquisitions that timed out",
            registry=self._registry,
        )

        # Server info
        self.info = Info(
            "flatdb",
            "flatdb information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    # Engines may already hold the default-registry instance
    if _metrics is None or registry is not None:
        _metrics = MetricsRegistry(registry)

    # Set server info
    from flatdb import __version__
    _metrics.info.info({
        "version": __version__,
    })

    # Start HTTP server for Prometheus scraping
    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
