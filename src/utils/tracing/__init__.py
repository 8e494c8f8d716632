"""
Distributed tracing using OpenTelemetry.

Instruments:
- Reconciliation runs
- Partition matching
- Batch driver steps (file I/O, locking)

Usage:
    from utils.tracing import initialize_tracing, trace_operation

    initialize_tracing(service_name="table-equalizer", otlp_endpoint="localhost:4317")

    with trace_operation("reconcile", source_table="customers") as span:
        ...
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
