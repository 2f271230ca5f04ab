from queryguard.__version__ import __version__

from queryguard.api import EXECUTE_QUERY_TOOL, VERIFY_QUERY_TOOL, QueryGuardSession
from queryguard.budget import BudgetRegistry, BudgetTracker
from queryguard.classification import is_chart_worthy
from queryguard.engine import QueryExecutionEngine
from queryguard.protocols import QueryService, QueryVerifier
from queryguard.ratelimit import SlidingWindowRateLimiter
from queryguard.tools import ToolResponse, ToolWrapper, format_query_response

from queryguard.common.exceptions import (
    BudgetExceeded,
    ErrorCode,
    ExecutionAborted,
    ExecutionTimeout,
    QueryGuardError,
    RateLimited,
    ServiceError,
)

from queryguard.types import (
    BudgetState,
    QueryExecutionResult,
    QueryHandle,
    QueryPollResponse,
    QueryRequest,
    QueryResult,
    QueryVerification,
)


__all__ = [
    "__version__",

    "QueryGuardSession",
    "EXECUTE_QUERY_TOOL",
    "VERIFY_QUERY_TOOL",
    "QueryExecutionEngine",
    "QueryService",
    "QueryVerifier",
    "BudgetTracker",
    "BudgetRegistry",
    "SlidingWindowRateLimiter",
    "is_chart_worthy",

    # Tools
    "ToolWrapper",
    "ToolResponse",
    "format_query_response",

    # Exceptions (public API)
    "QueryGuardError",
    "ErrorCode",
    "BudgetExceeded",
    "ServiceError",
    "ExecutionAborted",
    "ExecutionTimeout",
    "RateLimited",

    # Types
    "QueryRequest",
    "QueryHandle",
    "QueryPollResponse",
    "QueryResult",
    "QueryExecutionResult",
    "QueryVerification",
    "BudgetState",
]
