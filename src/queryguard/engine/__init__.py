"""Query execution engine."""

from queryguard.engine.executor import QueryExecutionEngine

__all__ = [
    "QueryExecutionEngine",
]
