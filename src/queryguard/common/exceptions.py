from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Standard error codes for queryguard operations.

    Each category has a specific prefix for easy identification.

    Attributes:
        CONFIG_*: Configuration-related errors
        VALIDATION_*: Input validation errors
        SERVICE_*: Query service transport errors
        EXECUTION_*: Query execution errors
        LIMIT_*: Consumption budget and rate limit errors
        RESOURCE_*: Resource availability errors
    """
    # Configuration errors
    CONFIG_ERROR = "CONFIG_001"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_001"

    # Service errors
    SERVICE_ERROR = "SERVICE_001"
    SUBMIT_ERROR = "SERVICE_002"
    POLL_ERROR = "SERVICE_003"
    VERIFY_ERROR = "SERVICE_004"

    # Execution errors
    EXECUTION_ERROR = "EXECUTION_001"
    EXECUTION_ABORTED = "EXECUTION_002"
    EXECUTION_TIMEOUT = "EXECUTION_003"

    # Limit errors
    BUDGET_EXCEEDED = "LIMIT_001"
    RATE_LIMIT_ERROR = "LIMIT_002"

    # Resource errors
    RESOURCE_NOT_FOUND = "RESOURCE_001"


class QueryGuardError(Exception):
    """Base exception for all queryguard errors.

    Attributes:
        message: Error message
        error_code: Error code from ErrorCode enum
        details: Additional error details
        cause: Optional underlying exception
        is_retryable: Whether the error is transient and can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXECUTION_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        is_retryable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        self.is_retryable = is_retryable

        # Lazy import to avoid circular dependency
        from queryguard.logging import get_logger
        logger = get_logger(__name__)
        logger.error(
            message,
            extra={
                "error_code": error_code.value,
                "details": self.details,
                "is_retryable": is_retryable,
            },
            exc_info=cause is not None
        )

    def __str__(self) -> str:
        msg = f"[{self.error_code.value}] {self.message}"
        if self.cause:
            msg = f"{msg} (caused by: {type(self.cause).__name__}: {str(self.cause)})"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "is_retryable": self.is_retryable
        }


class BudgetExceeded(QueryGuardError):
    """Consumption budget already exhausted; no query was submitted."""

    def __init__(self, consumed_bytes: int, limit_bytes: int, **kwargs):
        details = kwargs.pop('details', {})
        details.update({"consumed_bytes": consumed_bytes, "limit_bytes": limit_bytes})
        self.consumed_bytes = consumed_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            message=(
                f"Query budget exceeded: {consumed_bytes} bytes scanned "
                f"of a {limit_bytes} byte budget. No further queries can be executed "
                f"until the budget is reset."
            ),
            error_code=ErrorCode.BUDGET_EXCEEDED,
            details=details,
            **kwargs
        )


class ServiceError(QueryGuardError):
    """Transport or HTTP failure from the query service.

    Attributes:
        status: Upstream HTTP status, when the service reported one
        body: Upstream response body, when available
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[Any] = None,
        error_code: ErrorCode = ErrorCode.SERVICE_ERROR,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if status is not None:
            details["status"] = status
        if body is not None:
            details["body"] = str(body)[:500]
        self.status = status
        self.body = body
        super().__init__(message=message, error_code=error_code, details=details, **kwargs)

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        operation: str,
        error_code: ErrorCode = ErrorCode.SERVICE_ERROR,
    ) -> "ServiceError":
        """Wrap an arbitrary transport exception.

        Status and body are read from ``exc.status_code`` / ``exc.status`` /
        ``exc.body`` or from an attached ``exc.response`` object, which covers
        the common HTTP client error shapes.
        """
        response = getattr(exc, "response", None)
        status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
        if status is None and response is not None:
            status = getattr(response, "status_code", None) or getattr(response, "status", None)
        body = getattr(exc, "body", None)
        if body is None and response is not None:
            body = getattr(response, "text", None)
        return cls(
            message=f"Query service {operation} failed: {exc}",
            status=status if isinstance(status, int) else None,
            body=body,
            error_code=error_code,
            details={"operation": operation},
            cause=exc,
        )


class ExecutionAborted(QueryGuardError):
    """The query service reported the ABORTED state."""

    def __init__(self, continuation_token: Optional[str] = None, **kwargs):
        details = kwargs.pop('details', {})
        if continuation_token:
            details["continuation_token"] = continuation_token
        super().__init__(
            message="Query execution was aborted by the query service",
            error_code=ErrorCode.EXECUTION_ABORTED,
            details=details,
            **kwargs
        )


class ExecutionTimeout(QueryGuardError):
    """Polling attempts or the caller deadline ran out."""

    def __init__(
        self,
        message: str = "Query execution timed out",
        continuation_token: Optional[str] = None,
        attempts: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop('details', {})
        if continuation_token:
            details["continuation_token"] = continuation_token
        if attempts is not None:
            details["attempts"] = attempts
        kwargs.setdefault('is_retryable', True)
        super().__init__(
            message=message,
            error_code=ErrorCode.EXECUTION_TIMEOUT,
            details=details,
            **kwargs
        )


class RateLimited(QueryGuardError):
    """The sliding rate limit window is exhausted."""

    def __init__(self, max_calls: int, window_ms: int, **kwargs):
        details = kwargs.pop('details', {})
        details.update({"max_calls": max_calls, "window_ms": window_ms})
        self.max_calls = max_calls
        self.window_ms = window_ms
        kwargs.setdefault('is_retryable', True)
        super().__init__(
            message=(
                f"Rate limit exceeded: Maximum {max_calls} tool calls per "
                f"{window_ms / 1000:g} seconds. Please try again later."
            ),
            error_code=ErrorCode.RATE_LIMIT_ERROR,
            details=details,
            **kwargs
        )


# Helper functions for common error scenarios
def configuration_error(
    message: str,
    config_key: Optional[str] = None,
    **kwargs
) -> QueryGuardError:
    """Create a configuration error.

    Args:
        message: Error message
        config_key: Configuration key that caused the error
        **kwargs: Additional error details

    Returns:
        QueryGuardError with CONFIG_ERROR code
    """
    details = kwargs.get('details', {})
    if config_key:
        details["config_key"] = config_key

    return QueryGuardError(
        message=message,
        error_code=ErrorCode.CONFIG_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def validation_error(
    message: str,
    field: Optional[str] = None,
    value: Any = None,
    **kwargs
) -> QueryGuardError:
    """Create a validation error.

    Args:
        message: Error message
        field: Field that failed validation
        value: Invalid value
        **kwargs: Additional error details

    Returns:
        QueryGuardError with VALIDATION_ERROR code
    """
    details = kwargs.get('details', {})
    if field:
        details["field"] = field
    if value is not None:
        details["value"] = str(value)

    return QueryGuardError(
        message=message,
        error_code=ErrorCode.VALIDATION_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def resource_not_found_error(
    message: str,
    resource_type: Optional[str] = None,
    resource_name: Optional[str] = None,
    **kwargs
) -> QueryGuardError:
    """Create a resource not found error.

    Args:
        message: Error message
        resource_type: Type of resource (tool, tracker, ...)
        resource_name: Name of the missing resource
        **kwargs: Additional error details

    Returns:
        QueryGuardError with RESOURCE_NOT_FOUND code
    """
    details = kwargs.get('details', {})
    if resource_type:
        details["resource_type"] = resource_type
    if resource_name:
        details["resource_name"] = resource_name

    return QueryGuardError(
        message=message,
        error_code=ErrorCode.RESOURCE_NOT_FOUND,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )
