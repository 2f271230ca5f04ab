"""Rate limit and consumption budget settings."""

from typing import Optional

from pydantic import BaseModel, Field

from queryguard.constants.query import DEFAULT_RATE_LIMIT_MAX_CALLS, DEFAULT_RATE_LIMIT_WINDOW_MS


class RateLimitSettings(BaseModel):
    """Sliding window applied to all tool invocations of a session."""

    enabled: bool = Field(
        default=True,
        description="Disable to admit every tool call"
    )
    max_calls: int = Field(
        default=DEFAULT_RATE_LIMIT_MAX_CALLS,
        ge=1,
        description="Maximum tool calls within the window"
    )
    window_ms: int = Field(
        default=DEFAULT_RATE_LIMIT_WINDOW_MS,
        gt=0,
        description="Window length in milliseconds"
    )


class BudgetSettings(BaseModel):
    """Default consumption budget for queries executed through a session."""

    limit_gb: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Bytes scanned ceiling in decimal GB; unset means unlimited"
    )
