"""OpenTelemetry tracing configuration for PCRM.

Tracing is off by default. When PCRM_OTEL_ENABLED=1, merge and dedupe
operations emit spans with workspace and contact identifiers as
attributes. Contact names, channel values and notes are never exported.

Environment Variables:
    PCRM_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    PCRM_OTEL_SERVICE_NAME: Service name for spans (default: "pcrm")
    PCRM_OTEL_EXPORTER: "console" or "memory" (default: "console")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from pcrm.config import (
    OTEL_ENABLED_ENV,
    OTEL_EXPORTER_ENV,
    OTEL_SERVICE_NAME_ENV,
    get_env_bool,
    get_env_str,
)

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider

logger = logging.getLogger(__name__)

TRACER_NAME = "pcrm.contacts"

_tracer_provider: TracerProvider | None = None
_test_exporter: Any = None  # InMemorySpanExporter when PCRM_OTEL_EXPORTER=memory


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return get_env_bool(OTEL_ENABLED_ENV, False)


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing for PCRM.

    Idempotent - safe to call multiple times. The global TracerProvider can
    only be installed once per process, so later calls reuse it.

    Returns:
        True if tracing is enabled and configured, False otherwise.
    """
    global _tracer_provider, _test_exporter

    if not is_tracing_enabled():
        logger.debug("OpenTelemetry tracing disabled (%s not set)", OTEL_ENABLED_ENV)
        return False

    if _tracer_provider is not None:
        return True

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    service_name = get_env_str(OTEL_SERVICE_NAME_ENV, "pcrm")
    exporter_type = get_env_str(OTEL_EXPORTER_ENV, "console")

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter_type == "memory":
        _test_exporter = InMemorySpanExporter()
        provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    logger.info(
        "OpenTelemetry tracing configured: service=%s, exporter=%s",
        service_name,
        exporter_type,
    )
    return True


@contextmanager
def traced_operation(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Any]:
    """Run a block inside a span when tracing is enabled.

    Yields the active span, or None when tracing is disabled. Exceptions
    escaping the block are recorded on the span and re-raised.

    Args:
        name: Span name (e.g., "contacts.merge").
        attributes: Initial span attributes; None values are skipped.
    """
    if not is_tracing_enabled():
        yield None
        return

    from opentelemetry import trace

    tracer = trace.get_tracer(TRACER_NAME)
    safe_attributes = {k: v for k, v in (attributes or {}).items() if v is not None}
    with tracer.start_as_current_span(name, attributes=safe_attributes) as span:
        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            raise


def set_span_attributes(span: Any, attributes: dict[str, Any]) -> None:
    """Set attributes on a span yielded by traced_operation (no-op for None)."""
    if span is None or not span.is_recording():
        return
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, list):
            span.set_attribute(key, ",".join(str(v) for v in value))
        elif isinstance(value, bool | int | float | str):
            span.set_attribute(key, value)
        else:
            span.set_attribute(key, str(value))


def get_current_trace_id() -> str | None:
    """Get the current trace ID for logging correlation.

    Returns:
        Hex string of current trace ID, or None if no active span.
    """
    from opentelemetry import trace

    ctx = trace.get_current_span().get_span_context()
    if not ctx.is_valid:
        return None
    return format(ctx.trace_id, "032x")


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from the in-memory exporter (for testing)."""
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear captured spans from the in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def reset_tracing() -> None:
    """Clear captured spans (for testing).

    The global TracerProvider cannot be replaced once set, so the provider
    and the in-memory exporter are kept for later configure_tracing() calls.
    """
    clear_test_spans()
