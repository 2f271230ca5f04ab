"""Tool layer: rate-limited tool invocation and response rendering."""

from queryguard.tools.formatting import (
    NO_RESULT_MESSAGE,
    format_query_response,
    format_verification_response,
)
from queryguard.tools.wrapper import (
    ToolDefinition,
    ToolResponse,
    ToolWrapper,
    describe_service_error,
)

__all__ = [
    "NO_RESULT_MESSAGE",
    "format_query_response",
    "format_verification_response",
    "ToolDefinition",
    "ToolResponse",
    "ToolWrapper",
    "describe_service_error",
]
