"""Logging and telemetry settings."""

import logging

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Log output configuration."""

    level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    json_output: bool = Field(
        default=True,
        description="Emit JSON lines instead of plain text"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate that the level is a standard logging level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}. Use DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level


class TelemetrySettings(BaseModel):
    """OpenTelemetry instrumentation configuration."""

    enabled: bool = Field(
        default=True,
        description="Record tool and query metrics"
    )
    service_name: str = Field(
        default="queryguard",
        min_length=1,
        description="Name of the meter recording tool and query metrics; spans always use the queryguard tracer"
    )
