"""Prometheus metrics for the row store."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all row store metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Write path
        self.rows_inserted_total = Counter(
            "row_store_rows_inserted_total",
            "Total number of rows inserted",
            ["table"],
            registry=self._registry,
        )

        self.insert_rejections_total = Counter(
            "row_store_insert_rejections_total",
            "Total inserts rejected by validation",
            ["reason"],  # arity, unstorable_value, not_null, duplicate_primary_key, duplicate_unique
            registry=self._registry,
        )

        self.tables_created_total = Counter(
            "row_store_tables_created_total",
            "Total number of tables created",
            registry=self._registry,
        )

        # Read path
        self.selects_total = Counter(
            "row_store_selects_total",
            "Total select scans executed",
            registry=self._registry,
        )

        self.rows_scanned_total = Counter(
            "row_store_rows_scanned_total",
            "Total rows visited by sequential scans",
            registry=self._registry,
        )

        # Operation log
        self.operations_logged_total = Counter(
            "row_store_operations_logged_total",
            "Total operations appended to the operation log",
            registry=self._registry,
        )

        self.pending_operations = Gauge(
            "row_store_pending_operations",
            "Operations logged since the last successful checkpoint",
            ["database"],
            registry=self._registry,
        )

        # Checkpoint metrics
        self.checkpoints_total = Counter(
            "row_store_checkpoints_total",
            "Total number of checkpoints",
            ["status"],  # success, failure
            registry=self._registry,
        )

        self.checkpoint_duration_seconds = Histogram(
            "row_store_checkpoint_duration_seconds",
            "Checkpoint duration in seconds",
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        # Load metrics
        self.tables_loaded_total = Counter(
            "row_store_tables_loaded_total",
            "Tables restored from disk",
            registry=self._registry,
        )

        self.load_warnings_total = Counter(
            "row_store_load_warnings_total",
            "Problems skipped while loading a database",
            ["kind"],  # missing_table, corrupt_table, corrupt_row
            registry=self._registry,
        )

        self.info = Info(
            "row_store",
            "Row store information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """The collector registry the metrics are registered with."""
        return self._registry


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
    _metrics = MetricsRegistry(registry)

    from row_store import __version__
    _metrics.info.info({
        "version": __version__,
    })

    start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
