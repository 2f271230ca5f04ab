from typing import Optional

from pydantic import Field

from .base import QGBaseSettings
from .limits import BudgetSettings, RateLimitSettings
from .observability import LoggingSettings, TelemetrySettings
from .polling import PollingSettings


class _Settings(QGBaseSettings):
    """Application settings, one section per concern."""

    polling: PollingSettings = Field(
        default_factory=PollingSettings,
        description="Query polling configuration"
    )
    rate_limit: RateLimitSettings = Field(
        default_factory=RateLimitSettings,
        description="Tool invocation rate limit"
    )
    budget: BudgetSettings = Field(
        default_factory=BudgetSettings,
        description="Default consumption budget"
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Log output configuration"
    )
    telemetry: TelemetrySettings = Field(
        default_factory=TelemetrySettings,
        description="OpenTelemetry configuration"
    )


# Singleton instance
_settings: Optional[_Settings] = None


def get_settings(force_reload: bool = False) -> _Settings:
    """Get the singleton settings instance for the application.

    Settings are loaded from environment variables (and ``.env``) on first
    access. Components never call this themselves; the session passes the
    settings it was built with, so tests can construct ``_Settings``
    directly.

    Args:
        force_reload: If True, creates a new Settings instance even if
                     one already exists.

    Returns:
        Settings: The singleton Settings instance

    Example:
        ```python
        settings = get_settings()
        assert settings is get_settings()

        # Pick up environment changes
        new_settings = get_settings(force_reload=True)
        assert new_settings is not settings
        ```
    """
    global _settings

    if _settings is None or force_reload:
        _settings = _Settings()

    return _settings


def _reload_settings() -> _Settings:
    """Force reload of settings.

    This is primarily for testing purposes where you need to reset
    the singleton instance.

    Returns:
        A fresh _Settings instance
    """
    global _settings
    _settings = None
    return get_settings(force_reload=True)
