"""OpenTelemetry tracing for save and load.

Span names and attribute keys are namespaced under ``row_store.``:

    with trace_span("save", {"database": "shop", "tables": 2}):
        ...

produces a span ``row_store.save`` with attributes
``row_store.database`` and ``row_store.tables``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)

SPAN_PREFIX = "row_store."

_tracer: trace.Tracer | None = None


def _span_exporters(otlp_endpoint: str | None, console_export: bool) -> list[SpanExporter]:
    exporters: list[SpanExporter] = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())
    return exporters


def setup_tracing(
    service_name: str = "row_store",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Set up OpenTelemetry tracing.

    Without an endpoint and without console export spans are created but
    not exported.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
        console_export: Whether to also export to console (for debugging)

    Returns:
        Configured tracer instance
    """
    global _tracer

    from row_store import __version__

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": service_name, "service.version": __version__}
        )
    )
    for exporter in _span_exporters(otlp_endpoint, console_export):
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(service_name)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Get the row store tracer (a no-op tracer until setup_tracing runs)."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer("row_store")
    return _tracer


def span_attributes(attributes: dict[str, Any] | None) -> dict[str, Any]:
    """Namespace attribute keys and drop None values, which spans reject."""
    if not attributes:
        return {}
    return {
        f"{SPAN_PREFIX}{key}": value
        for key, value in attributes.items()
        if value is not None
    }


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """
    Context manager for a ``row_store.<name>`` span.

    Exceptions raised inside the block are recorded on the span and
    re-raised.

    Args:
        name: Operation name, without the ``row_store.`` prefix
        attributes: Optional attributes to add to the span

    Yields:
        The created span
    """
    with get_tracer().start_as_current_span(
        f"{SPAN_PREFIX}{name}", attributes=span_attributes(attributes)
    ) as span:
        yield span
