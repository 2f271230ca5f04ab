"""Request context carried onto log records.

A tool call sets its request id and tool name once; every record emitted
while the call runs, in any module, is tagged with them.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

from queryguard.__version__ import __version__

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
tool_name_var: ContextVar[Optional[str]] = ContextVar("tool_name", default=None)

_static_environment: Optional[str] = None
_static_extra: Dict[str, Any] = {}


class ContextFilter(logging.Filter):
    """Tag records with the current request context and package version.

    Request scoped values come from context variables so they follow the
    active asyncio task; static values come from ``set_logging_context``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.tool_name = tool_name_var.get()
        record.sdk_name = "queryguard"
        record.sdk_version = __version__

        if _static_environment is not None:
            setattr(record, "environment", _static_environment)
        for key, value in _static_extra.items():
            setattr(record, key, value)

        return True


def set_logging_context(
    environment: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Set process-wide static fields added to every record."""
    global _static_environment, _static_extra
    _static_environment = environment
    _static_extra = dict(extra or {})


def set_request_context(
    request_id: Optional[str] = None,
    tool_name: Optional[str] = None,
) -> None:
    """Bind the request id and tool name to the current context."""
    if request_id is not None:
        request_id_var.set(request_id)
    if tool_name is not None:
        tool_name_var.set(tool_name)


def clear_request_context() -> None:
    """Unbind the request id and tool name."""
    request_id_var.set(None)
    tool_name_var.set(None)
