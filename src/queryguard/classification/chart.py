"""Chart-worthiness classification of result schemas.

A result is chart-worthy when its schema looks like a time series:

- a time column (``timeframe`` / ``timestamp``) together with a numeric
  column anywhere in the schema, or
- a numeric array on its own. Grouped time series encode the time axis in
  the array index (one element per time bucket), so no explicit time
  column is present.

Mappings of all top-level entries are scanned jointly: a time column in one
entry and a numeric column in another satisfy the rule together.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from queryguard.constants.query import (
    ARRAY_ELEMENT_KEY,
    NUMERIC_FIELD_TYPES,
    TIME_FIELD_TYPES,
    FieldType,
)
from queryguard.types.query import FieldTypeDescriptor, RangedFieldTypes

RangedFieldTypesLike = Union[RangedFieldTypes, Mapping[str, Any]]


@dataclass
class SchemaMarkers:
    """Markers found while scanning a schema."""
    has_time: bool = False
    has_numeric: bool = False
    has_numeric_array: bool = False

    @property
    def is_chart_worthy(self) -> bool:
        return (self.has_time and self.has_numeric) or self.has_numeric_array


def _coerce(types: Optional[Iterable[RangedFieldTypesLike]]) -> List[RangedFieldTypes]:
    if not types:
        return []
    return [
        entry if isinstance(entry, RangedFieldTypes) else RangedFieldTypes.model_validate(entry)
        for entry in types
    ]


def _array_element(descriptor: FieldTypeDescriptor) -> Optional[FieldTypeDescriptor]:
    """Element type of an array: the ``element`` mapping of its first entry."""
    if not descriptor.types:
        return None
    return descriptor.types[0].mappings.get(ARRAY_ELEMENT_KEY)


def is_numeric_array(descriptor: FieldTypeDescriptor) -> bool:
    """True for arrays of double/long, also through nested arrays."""
    if descriptor.type is not FieldType.ARRAY:
        return False

    element = _array_element(descriptor)
    if element is None:
        return False
    if element.type in NUMERIC_FIELD_TYPES:
        return True
    if element.type is FieldType.ARRAY:
        return is_numeric_array(element)
    return False


def is_numeric(descriptor: FieldTypeDescriptor) -> bool:
    """Numeric marker test for a single column."""
    field_type = descriptor.type

    if field_type in NUMERIC_FIELD_TYPES:
        return True
    elif field_type is FieldType.ARRAY:
        return is_numeric_array(descriptor)
    elif field_type is FieldType.RECORD:
        return any(
            is_numeric(nested)
            for entry in descriptor.types
            for nested in entry.mappings.values()
        )
    return False


def scan_schema(types: Optional[Iterable[RangedFieldTypesLike]]) -> SchemaMarkers:
    """Collect time and numeric markers across all entries of a schema."""
    markers = SchemaMarkers()

    for entry in _coerce(types):
        for descriptor in entry.mappings.values():
            if descriptor.type in TIME_FIELD_TYPES:
                markers.has_time = True
            elif is_numeric_array(descriptor):
                markers.has_numeric = True
                markers.has_numeric_array = True
            elif is_numeric(descriptor):
                markers.has_numeric = True

    return markers


def is_chart_worthy(types: Optional[Iterable[RangedFieldTypesLike]]) -> bool:
    """Decide whether a result schema should be rendered as a chart.

    Args:
        types: Ranged field types of a query result, as models or plain
            mappings in the service's wire format

    Returns:
        True for time-series shaped schemas, False for plain tabular data
        and for an empty schema

    Example:
        >>> is_chart_worthy([{"mappings": {"timeframe": {"type": "timeframe"},
        ...                                "avg": {"type": "double"}}}])
        True
        >>> is_chart_worthy([{"mappings": {"host": {"type": "string"}}}])
        False
    """
    return scan_schema(types).is_chart_worthy
