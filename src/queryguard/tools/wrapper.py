"""Tool registration with rate limiting, error translation and telemetry.

Every registered tool is an async callable returning text. ``invoke``
applies, in order:

1. the shared sliding-window rate limit (rejections never reach the tool)
2. the tool callback inside a ``tool_call_scope``
3. translation of exceptions into error responses, so callers always get
   a ``ToolResponse`` back
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from queryguard.common.exceptions import (
    QueryGuardError,
    RateLimited,
    ServiceError,
    resource_not_found_error,
    validation_error,
)
from queryguard.logging import get_logger
from queryguard.monitoring import MetricsCollector
from queryguard.observability import tool_call_scope
from queryguard.ratelimit import SlidingWindowRateLimiter

logger = get_logger(__name__)

ToolCallback = Callable[..., Awaitable[str]]

FORBIDDEN_HINT = (
    "Note: Your user or service-user is most likely lacking the necessary "
    "permissions/scopes for this API Call."
)


@dataclass(frozen=True)
class ToolResponse:
    """Text response of a tool invocation."""

    text: str
    is_error: bool = False


@dataclass(frozen=True)
class ToolDefinition:
    """A registered tool."""

    name: str
    description: str
    callback: ToolCallback


def describe_service_error(error: ServiceError) -> str:
    """Render an upstream failure for the tool caller."""
    hint = f" {FORBIDDEN_HINT}" if error.status == 403 else ""
    status = error.status if error.status is not None else "unknown"
    body = f" (body: {error.body})" if error.body is not None else ""
    return f"Client Request Error: {error.message} with HTTP status: {status}.{hint}{body}"


class ToolWrapper:
    """Registry and invoker of rate-limited tools.

    One wrapper, and therefore one rate limiter, is shared by all tools of
    a session.

    Example:
        >>> tools = ToolWrapper(SlidingWindowRateLimiter())
        >>> @tools.tool("echo", "Echo the input")
        ... async def echo(text: str) -> str:
        ...     return text
        >>> response = await tools.invoke("echo", text="hi")
    """

    def __init__(
        self,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.rate_limiter = rate_limiter
        self.metrics = metrics
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, name: str, description: str, callback: ToolCallback) -> ToolDefinition:
        """Register ``callback`` under ``name``.

        Raises:
            QueryGuardError: If a tool with the same name is already registered
        """
        if name in self._tools:
            raise validation_error(f"Tool '{name}' is already registered", field="name", value=name)
        definition = ToolDefinition(name=name, description=description, callback=callback)
        self._tools[name] = definition
        logger.debug("Registered tool", extra={"tool": name})
        return definition

    def tool(self, name: str, description: str = "") -> Callable[[ToolCallback], ToolCallback]:
        """Decorator form of ``register``."""
        def decorator(func: ToolCallback) -> ToolCallback:
            self.register(name, description or (func.__doc__ or "").strip(), func)
            return func
        return decorator

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise resource_not_found_error(
                f"Tool '{name}' is not registered", resource_type="tool", resource_name=name
            ) from None

    async def invoke(self, name: str, **arguments: Any) -> ToolResponse:
        """Invoke a registered tool.

        Raises:
            QueryGuardError: If no tool named ``name`` is registered
        """
        definition = self.get(name)

        with tool_call_scope(name, metrics=self.metrics) as ctx:
            if self.rate_limiter is not None and not self.rate_limiter.try_acquire():
                ctx.mark_rate_limited()
                error = RateLimited(self.rate_limiter.max_calls, self.rate_limiter.window_ms)
                return ToolResponse(text=error.message, is_error=True)

            try:
                text = await definition.callback(**arguments)
            except ServiceError as exc:
                ctx.mark_error(type(exc).__name__)
                return ToolResponse(text=describe_service_error(exc), is_error=True)
            except QueryGuardError as exc:
                ctx.mark_error(type(exc).__name__)
                return ToolResponse(text=f"Error: {exc.message}", is_error=True)
            except Exception as exc:
                ctx.mark_error(type(exc).__name__)
                logger.error("Tool raised an unexpected error", extra={"tool": name}, exc_info=True)
                return ToolResponse(text=f"Error: {exc}", is_error=True)

            return ToolResponse(text=text)
