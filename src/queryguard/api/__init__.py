from .session import EXECUTE_QUERY_TOOL, VERIFY_QUERY_TOOL, QueryGuardSession

__all__ = [
    "EXECUTE_QUERY_TOOL",
    "VERIFY_QUERY_TOOL",
    "QueryGuardSession",
]
