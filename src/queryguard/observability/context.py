"""Per tool call observability context."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from pydantic import Field

from queryguard.types.base import QGBaseModel


class ToolCallContext(QGBaseModel):
    """Observability context of a single tool invocation.

    The context is mutated by the tool layer while the call runs: it marks
    rate-limit rejections and error responses so the enclosing scope can
    record the outcome even though no exception is raised.
    """

    request_id: str
    tool_name: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    success: bool = True
    rate_limited: bool = False
    error_type: Optional[str] = None

    @classmethod
    def generate(cls, tool_name: str, **kwargs: Any) -> "ToolCallContext":
        """Create a context with a fresh request id."""
        return cls(request_id=str(uuid.uuid4()), tool_name=tool_name, **kwargs)

    def mark_rate_limited(self) -> None:
        self.rate_limited = True
        self.success = False
        self.error_type = "RateLimited"

    def mark_error(self, error_type: str) -> None:
        self.success = False
        self.error_type = error_type

    def to_telemetry_dict(self) -> Dict[str, str]:
        """Flatten into string key/value pairs for log records and span attributes."""
        payload: Dict[str, str] = {
            "request_id": self.request_id,
            "tool_name": self.tool_name,
        }
        for key, value in (self.attributes or {}).items():
            if value is not None:
                payload[f"ctx.{key}"] = str(value)
        return payload
