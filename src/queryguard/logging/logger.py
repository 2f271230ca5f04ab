"""Structured logging for queryguard.

Log lines are JSON objects by default: fields passed through ``extra=``
end up as top-level keys, next to the request context injected by
``ContextFilter`` and the ids of the active OpenTelemetry span. The
handler writes to stderr because stdout is often the tool transport.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet

from opentelemetry import trace

_STANDARD_ATTRIBUTES: FrozenSet[str] = frozenset(
    set(logging.makeLogRecord({}).__dict__) | {"asctime", "message"}
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _span_ids() -> Dict[str, str]:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return {}
    return {
        "trace_id": format(span_context.trace_id, "032x"),
        "span_id": format(span_context.span_id, "016x"),
    }


class CustomJsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            name: value
            for name, value in vars(record).items()
            if name not in _STANDARD_ATTRIBUTES
        }
        payload.update(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )
        payload.update(_span_ids())
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _logging_config(level: str, json_output: bool) -> Dict[str, Any]:
    formatter = "json" if json_output else "text"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": CustomJsonFormatter},
            "text": {"format": _TEXT_FORMAT},
        },
        "filters": {
            "request_context": {"()": "queryguard.logging.filters.ContextFilter"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
                "filters": ["request_context"],
                "level": level,
            }
        },
        "root": {"level": level, "handlers": ["stderr"]},
    }


def setup_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Install the queryguard logging configuration on the root logger.

    Args:
        level: Root log level name, case-insensitive.
        json_output: Emit JSON lines; a plain text line format otherwise.
    """
    logging.config.dictConfig(_logging_config(level.upper(), json_output))
