import asyncio
import functools
from typing import Any, Callable, Dict, Optional, TypeVar

from opentelemetry.trace import SpanKind, Status, StatusCode

from queryguard.logging import get_logger
from queryguard.telemetry import get_tracer

F = TypeVar("F", bound=Callable[..., Any])

logger = get_logger(__name__)


def traced(
    span_name: Optional[str] = None,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    attribute_getter: Optional[Callable[..., Optional[Dict[str, Any]]]] = None,
) -> Callable[[F], F]:
    """Wrap a function call in an OpenTelemetry span.

    Exceptions are recorded on the span and re-raised unchanged.

    Args:
        span_name: Span name. Defaults to the module-qualified function name.
        kind: Span kind, defaults to INTERNAL.
        attributes: Static span attributes; ``None`` values are skipped.
        attribute_getter: Called with the function arguments to produce
            per-call attributes. A failing getter is logged and ignored.
    """

    def decorator(func: F) -> F:
        name = span_name or f"{func.__module__}.{func.__qualname__}"

        def _span_attributes(args: tuple, kwargs: dict) -> Dict[str, Any]:
            collected = {k: v for k, v in (attributes or {}).items() if v is not None}
            if attribute_getter is None:
                return collected
            try:
                dynamic = attribute_getter(*args, **kwargs) or {}
            except Exception as exc:
                logger.warning("Span attribute getter failed for %s: %s", name, exc)
                dynamic = {}
            collected.update({k: v for k, v in dynamic.items() if v is not None})
            return collected

        def _fail(span: Any, exc: Exception) -> None:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                tracer = get_tracer()
                with tracer.start_as_current_span(
                    name, kind=kind, attributes=_span_attributes(args, kwargs)
                ) as span:
                    try:
                        return await func(*args, **kwargs)
                    except Exception as exc:
                        _fail(span, exc)
                        raise

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = get_tracer()
            with tracer.start_as_current_span(
                name, kind=kind, attributes=_span_attributes(args, kwargs)
            ) as span:
                try:
                    return func(*args, **kwargs)
                except Exception as exc:
                    _fail(span, exc)
                    raise

        return sync_wrapper  # type: ignore[return-value]

    return decorator
