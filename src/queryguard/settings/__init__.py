"""Settings module providing configuration management for queryguard.

Built on Pydantic Settings; each domain has its own model and the main
aggregator exposes them as nested sections.

Architecture:
    1. Base Layer (base.py):
       - QGBaseSettings: env prefix, ``.env`` support, nested delimiter

    2. Domain Settings:
       - polling.py: poll interval, attempt and wall-clock limits
       - limits.py: rate limit window and default consumption budget
       - observability.py: logging and OpenTelemetry

    3. Main Aggregator (main.py):
       - _Settings: aggregates all domain settings
       - get_settings(): Singleton factory function
       - _reload_settings(): Force reload from environment

Environment Variable Naming:
    - Format: QUERYGUARD_<SECTION>__<SETTING>
    - Example: QUERYGUARD_RATE_LIMIT__MAX_CALLS=10
    - Example: QUERYGUARD_BUDGET__LIMIT_GB=5

Quick Start:
    >>> from queryguard.settings import get_settings
    >>> settings = get_settings()
    >>> settings.polling.interval_seconds
    2.0
"""

from .main import _Settings, get_settings, _reload_settings
from .base import QGBaseSettings
from .limits import BudgetSettings, RateLimitSettings
from .observability import LoggingSettings, TelemetrySettings
from .polling import PollingSettings

__all__ = [
    "get_settings",
    "QGBaseSettings",
    "PollingSettings",
    "RateLimitSettings",
    "BudgetSettings",
    "LoggingSettings",
    "TelemetrySettings",
]
