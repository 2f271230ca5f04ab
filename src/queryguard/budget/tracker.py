"""Consumption budget tracking.

A ``BudgetTracker`` is a thread-safe counter of bytes scanned against a
ceiling. A ``BudgetRegistry`` hands out one tracker per declared limit and is
the object injected into the query engine, so independent sessions (or test
cases) each hold their own registry instead of sharing module state.

The tracker is a pure counter: it does not remember which query contributed
which bytes.
"""

import threading
from typing import Dict, Optional

from queryguard.common.exceptions import validation_error
from queryguard.constants.query import BYTES_PER_GB
from queryguard.logging import get_logger
from queryguard.types.budget import BudgetState

logger = get_logger(__name__)


def gb_to_bytes(limit_gb: float) -> int:
    """Convert a decimal gigabyte budget to bytes."""
    if limit_gb < 0:
        raise validation_error("Budget limit must not be negative", field="limit_gb", value=limit_gb)
    return int(round(limit_gb * BYTES_PER_GB))


class BudgetTracker:
    """Cumulative, monotonic counter of scanned bytes.

    ``add_bytes_scanned`` is the only mutator and is atomic with respect to
    concurrent callers. ``reset`` exists for explicit session resets and
    test isolation.

    Example:
        >>> tracker = BudgetTracker(limit_bytes=1_000)
        >>> tracker.add_bytes_scanned(600).is_exceeded
        False
        >>> tracker.add_bytes_scanned(600).is_exceeded
        True
    """

    def __init__(self, limit_bytes: Optional[int] = None):
        self._limit_bytes = limit_bytes
        self._consumed_bytes = 0
        self._lock = threading.Lock()

    @property
    def limit_bytes(self) -> Optional[int]:
        return self._limit_bytes

    @property
    def consumed_bytes(self) -> int:
        with self._lock:
            return self._consumed_bytes

    @property
    def is_exceeded(self) -> bool:
        return self.state.is_exceeded

    @property
    def state(self) -> BudgetState:
        """Consistent snapshot of consumption and limit."""
        with self._lock:
            return BudgetState(limit_bytes=self._limit_bytes, consumed_bytes=self._consumed_bytes)

    def add_bytes_scanned(self, scanned_bytes: int) -> BudgetState:
        """Add scanned bytes and return the resulting state.

        Args:
            scanned_bytes: Non-negative byte count reported for a query

        Returns:
            Budget state including this addition

        Raises:
            QueryGuardError: If ``scanned_bytes`` is negative
        """
        if scanned_bytes < 0:
            raise validation_error(
                "Scanned bytes must not be negative",
                field="scanned_bytes",
                value=scanned_bytes,
            )
        with self._lock:
            self._consumed_bytes += int(scanned_bytes)
            state = BudgetState(limit_bytes=self._limit_bytes, consumed_bytes=self._consumed_bytes)

        if state.is_exceeded:
            logger.warning(
                "Query budget exceeded",
                extra={"consumed_bytes": state.consumed_bytes, "limit_bytes": state.limit_bytes},
            )
        return state

    def reset(self) -> None:
        with self._lock:
            self._consumed_bytes = 0

    def __repr__(self) -> str:
        return f"BudgetTracker(limit_bytes={self._limit_bytes}, consumed_bytes={self.consumed_bytes})"


class BudgetRegistry:
    """Session scoped store of budget trackers, one per declared limit.

    Trackers are created lazily on the first ``get`` for a limit; ``peek``
    never creates one, so calls without a budget leave no state behind.
    """

    def __init__(self):
        self._trackers: Dict[int, BudgetTracker] = {}
        self._lock = threading.Lock()

    def get(self, limit_gb: float) -> BudgetTracker:
        """Return the tracker for ``limit_gb``, creating it on first use."""
        limit_bytes = gb_to_bytes(limit_gb)
        with self._lock:
            tracker = self._trackers.get(limit_bytes)
            if tracker is None:
                tracker = BudgetTracker(limit_bytes=limit_bytes)
                self._trackers[limit_bytes] = tracker
                logger.debug("Created budget tracker", extra={"limit_bytes": limit_bytes})
            return tracker

    def peek(self, limit_gb: float) -> Optional[BudgetTracker]:
        """Return the tracker for ``limit_gb`` if one exists."""
        with self._lock:
            return self._trackers.get(gb_to_bytes(limit_gb))

    def reset(self) -> None:
        """Drop all trackers; the next ``get`` starts from zero."""
        with self._lock:
            self._trackers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)
