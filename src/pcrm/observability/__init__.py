"""PCRM Observability module.

Provides opt-in OpenTelemetry tracing for merge and dedupe operations.
"""

from pcrm.observability.tracing import (
    configure_tracing,
    get_current_trace_id,
    traced_operation,
)

__all__ = ["configure_tracing", "get_current_trace_id", "traced_operation"]
