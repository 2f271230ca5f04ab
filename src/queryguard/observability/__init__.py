"""Observability utilities for tool invocations."""

from .context import ToolCallContext
from .instrumentation import tool_call_scope

__all__ = [
    "ToolCallContext",
    "tool_call_scope",
]
