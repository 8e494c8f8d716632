"""
Unit tests for utils.tracing
"""

from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from utils.tracing import add_span_attributes, add_span_event, trace_operation
from utils.tracing import tracer as tracer_module


@pytest.fixture
def exporter():
    """Route trace_operation spans into an in-memory exporter."""
    span_exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    with patch("utils.tracing.context.get_tracer", return_value=provider.get_tracer("test")):
        yield span_exporter
    provider.shutdown()


@pytest.fixture
def fresh_tracer_state(monkeypatch):
    monkeypatch.setattr(tracer_module, "_tracer", None)
    monkeypatch.setattr(tracer_module, "_is_initialized", False)
    with patch.object(tracer_module.trace, "set_tracer_provider") as mock_set:
        yield mock_set


class TestTraceOperation:
    """Test trace_operation context manager"""

    def test_records_span_with_attributes(self, exporter):
        with trace_operation("reconcile", source_table="customers", max_workers=2, tables=["a", "b"]):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "reconcile"
        assert span.attributes["source_table"] == "customers"
        assert span.attributes["max_workers"] == 2
        assert span.attributes["tables"] == "['a', 'b']"

    def test_records_exception_and_reraises(self, exporter):
        with pytest.raises(ValueError):
            with trace_operation("reconcile"):
                raise ValueError("bad data")

        (span,) = exporter.get_finished_spans()
        assert span.attributes["error"] is True
        assert span.attributes["error.type"] == "ValueError"
        assert any(event.name == "exception" for event in span.events)

    def test_add_span_attributes_and_events(self, exporter):
        with trace_operation("batch_run"):
            add_span_attributes(insert_rows=3)
            add_span_event("inputs_loaded", source_table="customers")

        (span,) = exporter.get_finished_spans()
        assert span.attributes["insert_rows"] == 3
        assert span.events[0].name == "inputs_loaded"
        assert span.events[0].attributes["source_table"] == "customers"

    def test_helpers_without_active_span_are_noops(self):
        add_span_attributes(rows=1)
        add_span_event("nothing")


class TestInitializeTracing:
    """Test initialize_tracing configuration"""

    def test_no_exporter_by_default(self, fresh_tracer_state, monkeypatch):
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
        monkeypatch.delenv("TRACE_CONSOLE", raising=False)

        with patch.object(tracer_module, "OTLPSpanExporter") as mock_otlp:
            tracer = tracer_module.initialize_tracing()

        assert tracer is not None
        mock_otlp.assert_not_called()
        fresh_tracer_state.assert_called_once()

    def test_otlp_endpoint_from_environment(self, fresh_tracer_state, monkeypatch):
        monkeypatch.setenv("OTLP_ENDPOINT", "collector:4317")

        with patch.object(tracer_module, "OTLPSpanExporter") as mock_otlp, \
                patch.object(tracer_module, "BatchSpanProcessor"):
            tracer_module.initialize_tracing()

        mock_otlp.assert_called_once_with(endpoint="collector:4317", insecure=True)

    def test_second_call_returns_existing_tracer(self, fresh_tracer_state, monkeypatch):
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)

        first = tracer_module.initialize_tracing()
        second = tracer_module.initialize_tracing()

        assert first is second
        fresh_tracer_state.assert_called_once()

    def test_shutdown_resets_state(self, fresh_tracer_state, monkeypatch):
        monkeypatch.delenv("OTLP_ENDPOINT", raising=False)
        tracer_module.initialize_tracing()

        with patch.object(tracer_module.trace, "get_tracer_provider") as mock_provider:
            tracer_module.shutdown_tracing()

        mock_provider.return_value.shutdown.assert_called_once()
        assert tracer_module._is_initialized is False
