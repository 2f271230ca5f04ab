"""Query polling configuration settings."""

from typing import Optional

from pydantic import BaseModel, Field

from queryguard.constants.query import DEFAULT_POLL_INTERVAL_SECONDS


class PollingSettings(BaseModel):
    """Controls how the engine waits for long running queries.

    Neither ``max_attempts`` nor ``timeout_seconds`` is set by default, so a
    query is polled for as long as the service reports it as running.
    """

    interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        gt=0.0,
        le=60.0,
        description="Delay between two consecutive poll requests"
    )
    max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Poll requests before the query is cancelled and reported as timed out"
    )
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Wall-clock limit for a whole execution, submit included"
    )
