"""JSON log lines for the parser and scorers, stamped with the active trace ids."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import sys
from typing import Any

import orjson

from payload_search.observability.tracing import get_trace_context


# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({})))

_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    """Render each record as one orjson-encoded object.

    Query strings can be long and user supplied, so the message is clipped at
    ``MAX_MESSAGE_LEN`` characters and string extras at ``MAX_EXTRA_LEN``.
    Credentials that end up in ``extra=`` are masked.
    """

    REDACT_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_EXTRA_LEN = 500

    def format(self, record: logging.LogRecord) -> str:
        entry = self._base_fields(record)
        for key, value in self._extra_fields(record):
            entry.setdefault(key, value)
        return orjson.dumps(entry, default=self._json_default).decode("utf-8")

    def _base_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        ids = get_trace_context()
        fields: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _clip(record.getMessage(), self.MAX_MESSAGE_LEN),
            "trace_id": ids.get("trace_id", ""),
            "span_id": ids.get("span_id", ""),
        }
        _, dot, component = record.name.rpartition(".")
        if dot:
            fields["component"] = component
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        return fields

    def _extra_fields(self, record: logging.LogRecord):
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            if key.lower() in self.REDACT_KEYS:
                yield key, "[REDACTED]"
            elif isinstance(value, str):
                yield key, _clip(value, self.MAX_EXTRA_LEN)
            else:
                yield key, value

    def _json_default(self, value: Any) -> Any:
        if isinstance(value, (set, frozenset)):
            try:
                return sorted(value)
            except TypeError:
                return list(value)
        if isinstance(value, (bytes, bytearray)):
            # payload bytes are usually not text
            return value.decode("utf-8", errors="replace")
        return str(value) if isinstance(value, Exception) else repr(value)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Send all logging to stderr so stdout stays free for the query tree.

    Unknown level names fall back to INFO. ``logger_levels`` maps logger
    names to their own level.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(_PLAIN_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(_resolve_level(level))

    for name, override in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_resolve_level(override))
