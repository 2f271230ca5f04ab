"""Constants module for queryguard.

This module contains all constant values and enumerations used throughout
the package. It has no dependencies on other queryguard modules.
"""

from queryguard.constants.query import (
    ARRAY_ELEMENT_KEY,
    BYTES_PER_GB,
    CONTINUE_POLLING_STATES,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_RATE_LIMIT_MAX_CALLS,
    DEFAULT_RATE_LIMIT_WINDOW_MS,
    NUMERIC_FIELD_TYPES,
    TIME_FIELD_TYPES,
    FieldType,
    QueryState,
)

__all__ = [
    "QueryState",
    "FieldType",
    "CONTINUE_POLLING_STATES",
    "TIME_FIELD_TYPES",
    "NUMERIC_FIELD_TYPES",
    "ARRAY_ELEMENT_KEY",
    "BYTES_PER_GB",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_RATE_LIMIT_MAX_CALLS",
    "DEFAULT_RATE_LIMIT_WINDOW_MS",
]
