"""Common exceptions for queryguard.

Exception Design:
    All exceptions inherit from QueryGuardError and carry a categorized
    ErrorCode plus structured details. The handful of subclasses exist
    because callers must tell them apart: a budget or rate limit rejection
    happens before any network call, a service error is a transport failure,
    and an aborted or timed out execution is a terminal query outcome.
"""

from queryguard.common.exceptions import (
    QueryGuardError,
    ErrorCode,
    BudgetExceeded,
    ServiceError,
    ExecutionAborted,
    ExecutionTimeout,
    RateLimited,
    # Helper functions
    configuration_error,
    validation_error,
    resource_not_found_error,
)

__all__ = [
    # Base Exception and Error Codes
    "QueryGuardError",
    "ErrorCode",
    # Typed failures
    "BudgetExceeded",
    "ServiceError",
    "ExecutionAborted",
    "ExecutionTimeout",
    "RateLimited",
    # Helper functions
    "configuration_error",
    "validation_error",
    "resource_not_found_error",
]
