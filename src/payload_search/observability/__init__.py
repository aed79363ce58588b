"""Logging and tracing helpers."""

from payload_search.observability.logging import JsonFormatter, configure_logging
from payload_search.observability.tracing import create_span, get_trace_context, set_trace_context


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "set_trace_context",
]
