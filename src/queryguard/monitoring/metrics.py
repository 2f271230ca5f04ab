"""Metrics collection for tool calls and query executions.

This module provides classes for collecting and exporting metrics related
to tool invocations, query outcomes and data consumption. Instruments are
created from the active OpenTelemetry meter provider; without a configured
SDK they are no-ops and only the in-memory summary is kept.
"""

import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from queryguard.logging import get_logger
from queryguard.telemetry import INSTRUMENTATION_SCOPE, get_meter

if TYPE_CHECKING:
    from queryguard.settings.main import _Settings as SettingsType
else:
    SettingsType = Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ToolCallMetrics:
    """Container for a single tool invocation.

    Attributes:
        tool_name: Name of the invoked tool
        duration_seconds: Wall-clock duration of the call
        success: Whether the tool produced a non-error response
        rate_limited: Whether the call was rejected by the rate limiter
        error_type: Exception class name for failed calls
        timestamp: When the call finished
    """

    tool_name: str
    duration_seconds: float
    success: bool
    rate_limited: bool = False
    error_type: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data


@dataclass
class QueryMetrics:
    """Container for a single query execution.

    Attributes:
        outcome: completed, no_result, aborted, timeout, budget_exceeded or service_error
        duration_seconds: Wall-clock duration of the execution
        scanned_bytes: Bytes scanned, for completed queries
        polls: Number of poll requests issued
        timestamp: When the execution finished
    """

    outcome: str
    duration_seconds: float
    scanned_bytes: int = 0
    polls: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data


class MetricsCollector:
    """Collector for tool and query metrics.

    This class records metrics to OpenTelemetry instruments and keeps a
    bounded in-memory history for summaries.

    Attributes:
        settings: Application settings (optional)
        logger: Logger instance
        meter: OpenTelemetry meter
    """

    def __init__(self, settings: Optional[SettingsType] = None, history_limit: int = 1000):
        """Initialize metrics collector.

        Args:
            settings: Application settings
            history_limit: Maximum entries kept per history list
        """
        self.settings = settings
        self.logger = get_logger(__name__)
        self._history_limit = history_limit
        self._tool_calls: List[ToolCallMetrics] = []
        self._queries: List[QueryMetrics] = []
        self._lock = threading.Lock()

        telemetry = getattr(self.settings, "telemetry", None)
        meter_name = getattr(telemetry, "service_name", INSTRUMENTATION_SCOPE)
        self.meter = get_meter(meter_name)
        self._setup_instruments()

    def _setup_instruments(self) -> None:
        """Setup OpenTelemetry instruments."""
        # Counters
        self.tool_call_counter = self.meter.create_counter(
            "queryguard_tool_calls_total",
            description="Total number of tool invocations",
            unit="calls"
        )

        self.tool_error_counter = self.meter.create_counter(
            "queryguard_tool_errors_total",
            description="Tool invocations that returned an error",
            unit="calls"
        )

        self.rate_limited_counter = self.meter.create_counter(
            "queryguard_rate_limited_total",
            description="Tool invocations rejected by the rate limiter",
            unit="calls"
        )

        self.query_counter = self.meter.create_counter(
            "queryguard_queries_total",
            description="Query executions by outcome",
            unit="queries"
        )

        self.bytes_scanned_counter = self.meter.create_counter(
            "queryguard_bytes_scanned_total",
            description="Bytes scanned by completed queries",
            unit="bytes"
        )

        # Histograms
        self.tool_duration_histogram = self.meter.create_histogram(
            "queryguard_tool_duration_seconds",
            description="Duration of tool invocations",
            unit="seconds"
        )

        self.query_duration_histogram = self.meter.create_histogram(
            "queryguard_query_duration_seconds",
            description="Duration of query executions",
            unit="seconds"
        )

    def _append(self, history: List[Any], item: Any) -> None:
        with self._lock:
            history.append(item)
            overflow = len(history) - self._history_limit
            if overflow > 0:
                del history[:overflow]

    def record_tool_call(self, metrics: ToolCallMetrics) -> None:
        """Record a tool invocation.

        Args:
            metrics: Tool call metrics to record
        """
        self._append(self._tool_calls, metrics)

        attributes = {
            "tool": metrics.tool_name,
            "success": str(metrics.success).lower(),
        }

        self.tool_call_counter.add(1, attributes)
        self.tool_duration_histogram.record(metrics.duration_seconds, attributes)

        if metrics.rate_limited:
            self.rate_limited_counter.add(1, {"tool": metrics.tool_name})
        elif not metrics.success:
            self.tool_error_counter.add(
                1, {**attributes, "error_type": metrics.error_type or "unknown"}
            )

        self.logger.debug("Tool call recorded", extra=metrics.to_dict())

    def record_query(self, metrics: QueryMetrics) -> None:
        """Record a query execution.

        Args:
            metrics: Query metrics to record
        """
        self._append(self._queries, metrics)

        attributes = {"outcome": metrics.outcome}
        self.query_counter.add(1, attributes)
        self.query_duration_histogram.record(metrics.duration_seconds, attributes)
        if metrics.scanned_bytes:
            self.bytes_scanned_counter.add(metrics.scanned_bytes, attributes)

        self.logger.debug("Query execution recorded", extra=metrics.to_dict())

    def get_metrics_summary(self, time_window: timedelta = timedelta(hours=1)) -> Dict[str, Any]:
        """Get summary of metrics for a time window.

        Args:
            time_window: Time window to summarize

        Returns:
            Dictionary with metrics summary
        """
        cutoff = _utcnow() - time_window
        with self._lock:
            tool_calls = [m for m in self._tool_calls if m.timestamp > cutoff]
            queries = [m for m in self._queries if m.timestamp > cutoff]

        successful = [m for m in tool_calls if m.success]
        return {
            "total_tool_calls": len(tool_calls),
            "successful_tool_calls": len(successful),
            "rate_limited_tool_calls": sum(1 for m in tool_calls if m.rate_limited),
            "success_rate": len(successful) / len(tool_calls) if tool_calls else 0.0,
            "calls_by_tool": self._group_by_attribute(tool_calls, "tool_name"),
            "total_queries": len(queries),
            "queries_by_outcome": self._group_by_attribute(queries, "outcome"),
            "total_bytes_scanned": sum(m.scanned_bytes for m in queries),
        }

    def _group_by_attribute(self, metrics_list: List[Any], attribute: str) -> Dict[str, int]:
        """Group metrics by an attribute."""
        grouped: Dict[str, int] = {}
        for metric in metrics_list:
            value = getattr(metric, attribute)
            grouped[value] = grouped.get(value, 0) + 1
        return grouped
