"""Monitoring infrastructure for metrics and telemetry.

This module provides metrics collection for tool calls and query executions
backed by OpenTelemetry.
"""

from queryguard.monitoring.metrics import MetricsCollector, QueryMetrics, ToolCallMetrics

__all__ = [
    "MetricsCollector",
    "QueryMetrics",
    "ToolCallMetrics",
]
