"""Budget state snapshot."""

from typing import Optional

from pydantic import Field, computed_field

from queryguard.constants.query import BYTES_PER_GB
from queryguard.types.base import QGBaseModel


class BudgetState(QGBaseModel):
    """Point-in-time view of a consumption budget.

    Attributes:
        limit_bytes: Budget ceiling in bytes, None when unlimited
        consumed_bytes: Bytes scanned so far
    """
    limit_bytes: Optional[int] = Field(default=None, ge=0)
    consumed_bytes: int = Field(default=0, ge=0)

    @computed_field
    @property
    def is_exceeded(self) -> bool:
        """Strictly greater: landing exactly on the limit is still allowed."""
        if self.limit_bytes is None:
            return False
        return self.consumed_bytes > self.limit_bytes

    @property
    def consumed_gb(self) -> float:
        return self.consumed_bytes / BYTES_PER_GB

    @property
    def limit_gb(self) -> Optional[float]:
        if self.limit_bytes is None:
            return None
        return self.limit_bytes / BYTES_PER_GB
