"""Unit tests for logging and tracing helpers."""

import json
import logging
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from payload_search.observability import (
    JsonFormatter,
    configure_logging,
    create_span,
    get_trace_context,
    set_trace_context,
    tracing as tracing_module,
)
from payload_search.query.request import parse_query_request


def make_record(msg="test message", level=logging.INFO, name="payload_search.query.parser"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def exporter(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(tracing_module, "_tracer", provider.get_tracer("test"))
    return exporter


@pytest.mark.unit
class TestJsonFormatter:
    def test_format_includes_trace_context(self):
        set_trace_context("a" * 32, "b" * 16)
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["logger"] == "payload_search.query.parser"
        assert data["component"] == "parser"
        assert data["trace_id"] == "a" * 32
        assert data["span_id"] == "b" * 16
        assert "timestamp" in data

    def test_format_includes_extra_fields(self):
        record = make_record(level=logging.ERROR)
        record.query_text = "a+b"
        data = json.loads(JsonFormatter().format(record))
        assert data["query_text"] == "a+b"

    def test_format_truncates_and_redacts(self):
        record = make_record(msg="x" * 5000)
        record.api_key = "secret"
        data = json.loads(JsonFormatter().format(record))
        assert data["message"].endswith("...")
        assert data["api_key"] == "[REDACTED]"

    def test_format_includes_exception(self):
        try:
            raise ValueError("bad flag")
        except ValueError:
            record = logging.LogRecord("t", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad flag" in data["exception"]

    def test_json_default_handles_set_and_bytes(self):
        formatter = JsonFormatter()
        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"


@pytest.mark.unit
class TestTraceContext:
    def test_get_trace_context_generates_ids(self):
        tracing_module._trace_ids.set(None)
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16
        assert get_trace_context() == ctx

    def test_set_trace_context_preserves_values(self):
        set_trace_context("trace", "span")
        assert get_trace_context() == {"trace_id": "trace", "span_id": "span"}


@pytest.mark.unit
class TestCreateSpan:
    def test_span_is_exported_with_attributes(self, exporter):
        with create_span("unit.operation", {"query.fields": 2}):
            pass
        (span,) = exporter.get_finished_spans()
        assert span.name == "unit.operation"
        assert span.attributes["query.fields"] == 2

    def test_log_ids_follow_span_and_are_restored(self, exporter):
        set_trace_context("outer", "outer-span")
        with create_span("unit.operation") as span:
            inside = get_trace_context()
            assert inside["trace_id"] == format(span.get_span_context().trace_id, "032x")
        assert get_trace_context() == {"trace_id": "outer", "span_id": "outer-span"}

    def test_errors_are_recorded_and_reraised(self, exporter):
        with pytest.raises(RuntimeError):
            with create_span("unit.failure"):
                raise RuntimeError("boom")
        (span,) = exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR

    def test_parsing_opens_a_span(self, exporter):
        parse_query_request({"query": "a+b", "fields": ["title^2", "body"]})
        (span,) = exporter.get_finished_spans()
        assert span.name == "payload_search.parse"
        assert span.attributes["query.fields"] == 2


@pytest.mark.unit
class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("payload_search.query").setLevel(logging.NOTSET)

    def test_json_handler(self):
        configure_logging("debug", json_output=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_plain_handler_and_overrides(self):
        configure_logging("warning", json_output=False, logger_levels={"payload_search.query": "debug"})
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("payload_search.query").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO
