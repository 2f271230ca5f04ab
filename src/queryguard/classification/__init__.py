"""Result schema classification."""

from queryguard.classification.chart import (
    SchemaMarkers,
    is_chart_worthy,
    is_numeric,
    is_numeric_array,
    scan_schema,
)

__all__ = [
    "SchemaMarkers",
    "is_chart_worthy",
    "is_numeric",
    "is_numeric_array",
    "scan_schema",
]
