"""One-call observability setup for processes embedding the row store."""

from __future__ import annotations

from row_store.infrastructure.config import Config, get_config
from row_store.infrastructure.logging import setup_logging
from row_store.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from row_store.infrastructure.tracing import setup_tracing


def configure_observability(
    config: Config | None = None,
    serve_metrics: bool = False,
) -> MetricsRegistry:
    """Configure logging, tracing and metrics from a Config.

    Args:
        config: Configuration to apply (default: the global config).
        serve_metrics: Start the Prometheus scrape endpoint on
            ``observability.metrics_port``.

    Returns:
        The metrics registry the engine will report to.
    """
    config = config or get_config()
    obs = config.observability

    setup_logging(level=obs.log_level, log_format=obs.log_format)
    setup_tracing(service_name=obs.otel_service_name, otlp_endpoint=obs.otel_endpoint)

    if serve_metrics:
        return setup_metrics(port=obs.metrics_port)
    return get_metrics()
