"""Protocol definitions for queryguard.

Protocols provide type-safe interfaces without requiring inheritance,
following Python's structural subtyping (duck typing with type hints).
"""

from .services import QueryService, QueryVerifier

__all__ = [
    "QueryService",
    "QueryVerifier",
]
