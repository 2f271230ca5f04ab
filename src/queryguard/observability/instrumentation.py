"""Context manager instrumenting a single tool invocation."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from opentelemetry.trace import Status, StatusCode

from queryguard.logging import get_logger
from queryguard.logging.filters import clear_request_context, set_request_context
from queryguard.monitoring.metrics import MetricsCollector, ToolCallMetrics
from queryguard.observability.context import ToolCallContext
from queryguard.telemetry import get_tracer

logger = get_logger(__name__)


@contextmanager
def tool_call_scope(
    tool_name: str,
    *,
    metrics: Optional[MetricsCollector] = None,
    request_id: Optional[str] = None,
    attributes: Optional[Dict[str, Any]] = None,
) -> Iterator[ToolCallContext]:
    """Apply logging context, tracing and metrics around a tool call.

    Yields the call's ``ToolCallContext``; outcome flags set on it inside the
    block are reported when the block exits. An exception escaping the block
    is recorded as a failure and re-raised.
    """
    if request_id is None:
        ctx = ToolCallContext.generate(tool_name, attributes=attributes or {})
    else:
        ctx = ToolCallContext(request_id=request_id, tool_name=tool_name, attributes=attributes or {})
    telemetry_payload = ctx.to_telemetry_dict()

    set_request_context(request_id=ctx.request_id, tool_name=tool_name)
    tracer = get_tracer()
    start_time = time.perf_counter()

    try:
        with tracer.start_as_current_span(f"queryguard.tool.{tool_name}") as span:
            for key, value in telemetry_payload.items():
                span.set_attribute(f"queryguard.{key}", value)
            try:
                yield ctx
            except Exception as exc:
                ctx.mark_error(type(exc).__name__)
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR))
                logger.error("Tool call failed", extra=telemetry_payload, exc_info=True)
                raise
            finally:
                span.set_attribute("queryguard.tool.success", ctx.success)
                if ctx.rate_limited:
                    span.set_attribute("queryguard.tool.rate_limited", True)
                if metrics is not None:
                    metrics.record_tool_call(
                        ToolCallMetrics(
                            tool_name=tool_name,
                            duration_seconds=time.perf_counter() - start_time,
                            success=ctx.success,
                            rate_limited=ctx.rate_limited,
                            error_type=ctx.error_type,
                        )
                    )
    finally:
        clear_request_context()
