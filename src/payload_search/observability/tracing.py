"""Trace correlation for log records and OpenTelemetry spans around parsing."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode


# Per-context ids stamped onto every log record
_trace_ids: ContextVar[dict[str, str] | None] = ContextVar("payload_search_trace_ids", default=None)

_tracer = trace.get_tracer("payload_search")


def get_trace_context() -> dict[str, str]:
    """Return the current trace and span ids, minting fresh ones if unset."""
    ctx = _trace_ids.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16]}
        _trace_ids.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str) -> None:
    _trace_ids.set({"trace_id": trace_id, "span_id": span_id})


@contextmanager
def create_span(name: str, attributes: dict[str, Any] | None = None) -> Generator[Span, None, None]:
    """Open a span and point the log correlation ids at it while it is active."""
    previous = _trace_ids.get()
    with _tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)

        span_context = span.get_span_context()
        if span_context.is_valid:
            set_trace_context(format(span_context.trace_id, "032x"), format(span_context.span_id, "016x"))
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            _trace_ids.set(previous)
