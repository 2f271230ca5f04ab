"""Query request, response and result schema types.

The schema types are recursive: an ``array`` or ``record`` column carries a
nested list of ``RangedFieldTypes``, each describing the shape of a range of
rows (or elements) with its own column mappings.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ConfigDict, Field, field_validator

from queryguard.constants.query import FieldType, QueryState
from queryguard.types.base import WireModel
from queryguard.types.budget import BudgetState


class QueryRequest(WireModel):
    """A query submission. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    max_result_records: Optional[int] = Field(default=None, gt=0)
    max_result_bytes: Optional[int] = Field(default=None, gt=0)


class FieldTypeDescriptor(WireModel):
    """Type of a single column.

    Known tags are parsed into ``FieldType`` members; tags this package does
    not know are kept as plain strings so newer service versions still load.

    Attributes:
        type: Type tag (string, double, long, timestamp, timeframe, array, record, ...)
        types: Nested ranged types for ``array`` and ``record`` columns
    """
    model_config = ConfigDict(use_enum_values=False)

    type: Union[FieldType, str] = Field(..., union_mode="left_to_right")
    types: List["RangedFieldTypes"] = Field(default_factory=list)


class RangedFieldTypes(WireModel):
    """Column mappings valid for a range of rows.

    Ranges of different entries may overlap; each entry describes one record
    shape occurring in the result.
    """
    index_range: Optional[Tuple[int, int]] = Field(default=None)
    mappings: Dict[str, FieldTypeDescriptor] = Field(default_factory=dict)


FieldTypeDescriptor.model_rebuild()


class ResultMetadata(WireModel):
    """Execution metadata reported alongside a result.

    ``scanned_bytes`` is the billed consumption of the query and is final
    once reported.
    """
    scanned_bytes: Optional[int] = Field(default=None, ge=0)
    scanned_records: Optional[int] = Field(default=None, ge=0)
    execution_time_milliseconds: Optional[int] = Field(default=None, ge=0)
    query_id: Optional[str] = Field(default=None)
    sampled: Optional[bool] = Field(default=None)


class QueryResult(WireModel):
    """Records and schema returned by the query service."""
    records: List[Dict[str, Any]] = Field(default_factory=list)
    types: List[RangedFieldTypes] = Field(default_factory=list)
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)


def _normalize_state(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value).upper()


class QueryHandle(WireModel):
    """Response of a query submission.

    Carries either an immediately available result or a continuation token
    to poll with.
    """
    state: str = Field(default=QueryState.NOT_STARTED.value)
    continuation_token: Optional[str] = Field(default=None)
    result: Optional[QueryResult] = Field(default=None)

    @field_validator("state", mode="before")
    @classmethod
    def validate_state(cls, v: Any) -> str:
        return _normalize_state(v)


class QueryPollResponse(WireModel):
    """Response of a single poll request."""
    state: str
    result: Optional[QueryResult] = Field(default=None)

    @field_validator("state", mode="before")
    @classmethod
    def validate_state(cls, v: Any) -> str:
        return _normalize_state(v)


class QueryExecutionResult(WireModel):
    """Normalized result handed to the presentation layer.

    Attributes:
        records: Result rows
        types: Result schema
        scanned_bytes: Bytes scanned (billed) by the query
        scanned_records: Records scanned by the query
        execution_time_milliseconds: Server side execution time
        query_id: Service assigned query identifier
        sampled: Whether the service sampled the data
        budget_state: Budget after this query, when a budget was tracked
        chart_worthy: Whether the schema looks like a time series
    """
    records: List[Dict[str, Any]] = Field(default_factory=list)
    types: List[RangedFieldTypes] = Field(default_factory=list)
    scanned_bytes: Optional[int] = Field(default=None, ge=0)
    scanned_records: Optional[int] = Field(default=None, ge=0)
    execution_time_milliseconds: Optional[int] = Field(default=None, ge=0)
    query_id: Optional[str] = Field(default=None)
    sampled: Optional[bool] = Field(default=None)
    budget_state: Optional[BudgetState] = Field(default=None)
    chart_worthy: bool = Field(default=False)

    @property
    def record_count(self) -> int:
        return len(self.records)


class VerificationNotification(WireModel):
    """Finding reported while checking a query, such as a syntax error or a deprecation."""
    severity: str = Field(default="INFO")
    message: str = Field(default="")
    notification_type: Optional[str] = Field(default=None)

    @field_validator("severity", mode="before")
    @classmethod
    def validate_severity(cls, v: Any) -> str:
        return _normalize_state(v) if v is not None else "INFO"


class QueryVerification(WireModel):
    """Outcome of checking a query without executing it.

    A valid query may still carry notifications, e.g. warnings about
    expensive constructs.
    """
    valid: bool
    notifications: List[VerificationNotification] = Field(default_factory=list)
