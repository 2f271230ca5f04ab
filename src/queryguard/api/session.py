from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from queryguard.budget import BudgetRegistry
from queryguard.classification import is_chart_worthy as _classify
from queryguard.common.exceptions import (
    ErrorCode,
    QueryGuardError,
    ServiceError,
    configuration_error,
    validation_error,
)
from queryguard.constants.query import DEFAULT_POLL_INTERVAL_SECONDS
from queryguard.engine import QueryExecutionEngine
from queryguard.engine.executor import SleepFunc
from queryguard.logging import get_logger, set_logging_context, setup_logging
from queryguard.monitoring import MetricsCollector
from queryguard.protocols import QueryService, QueryVerifier
from queryguard.ratelimit import SlidingWindowRateLimiter
from queryguard.settings import get_settings
from queryguard.settings.main import _Settings
from queryguard.tools import ToolWrapper, format_query_response, format_verification_response
from queryguard.types.budget import BudgetState
from queryguard.types.query import (
    QueryExecutionResult,
    QueryRequest,
    QueryVerification,
    RangedFieldTypes,
)
from queryguard.utils import traced

logger = get_logger(__name__)

EXECUTE_QUERY_TOOL = "execute_query"
VERIFY_QUERY_TOOL = "verify_query"


class QueryGuardSession:
    """Consumption-guarded query execution for one client session.

    A session owns the shared rate limiter, the budget registry, the engine
    and the tool registry. Nothing is shared between sessions.

    Attributes:
        engine: Query execution engine
        budgets: Per-limit budget trackers
        rate_limiter: Shared tool-call rate limiter, None when disabled
        verifier: Query verifier, None when verification is unavailable
        tools: Registered tools, ``execute_query`` and, with a verifier,
            ``verify_query``
        default_budget_gb: Budget applied when a call declares none
    """

    def __init__(
        self,
        service: QueryService,
        *,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        budgets: Optional[BudgetRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_poll_attempts: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        default_budget_gb: Optional[float] = None,
        sleep: Optional[SleepFunc] = None,
        verifier: Optional[QueryVerifier] = None,
    ):
        if verifier is None and isinstance(service, QueryVerifier):
            verifier = service
        self.verifier = verifier
        self.budgets = budgets if budgets is not None else BudgetRegistry()
        self.rate_limiter = rate_limiter
        self.metrics = metrics
        self.max_poll_attempts = max_poll_attempts
        self.timeout_seconds = timeout_seconds
        self.default_budget_gb = default_budget_gb
        self.engine = QueryExecutionEngine(
            service,
            budgets=self.budgets,
            poll_interval_seconds=poll_interval_seconds,
            sleep=sleep,
            metrics=metrics,
        )
        self.tools = ToolWrapper(rate_limiter=rate_limiter, metrics=metrics)
        self.tools.register(
            EXECUTE_QUERY_TOOL,
            "Execute a query and return its records together with scan cost and budget information.",
            self._execute_query_tool,
        )
        if verifier is not None:
            self.tools.register(
                VERIFY_QUERY_TOOL,
                f"Verify a query before executing it with the '{EXECUTE_QUERY_TOOL}' tool. "
                "Verification scans no data and is not charged against the budget.",
                self._verify_query_tool,
            )

    @classmethod
    def from_settings(
        cls,
        service: QueryService,
        settings: Optional[_Settings] = None,
        *,
        configure_logging: bool = False,
        **overrides: Any,
    ) -> "QueryGuardSession":
        """Build a session from application settings.

        Args:
            service: Query service implementation
            settings: Settings to use; loaded from the environment if omitted
            configure_logging: Also install the logging configuration from settings
                and tag records with ``app_env``
            **overrides: Constructor arguments taking precedence over settings

        Raises:
            QueryGuardError: If the environment holds invalid settings
        """
        if settings is None:
            try:
                settings = get_settings()
            except ValidationError as exc:
                raise _settings_error(exc) from exc
        if configure_logging:
            setup_logging(settings.logging.level, json_output=settings.logging.json_output)
            set_logging_context(environment=settings.app_env)

        kwargs = {
            "poll_interval_seconds": settings.polling.interval_seconds,
            "max_poll_attempts": settings.polling.max_attempts,
            "timeout_seconds": settings.polling.timeout_seconds,
            "default_budget_gb": settings.budget.limit_gb,
        }
        if settings.rate_limit.enabled:
            kwargs["rate_limiter"] = SlidingWindowRateLimiter(
                max_calls=settings.rate_limit.max_calls,
                window_ms=settings.rate_limit.window_ms,
            )
        if settings.telemetry.enabled:
            kwargs["metrics"] = MetricsCollector(settings)
        kwargs.update(overrides)

        logger.info(
            "Created query session",
            extra={
                "rate_limited": kwargs.get("rate_limiter") is not None,
                "default_budget_gb": kwargs.get("default_budget_gb"),
            },
        )
        return cls(service, **kwargs)

    def _budget_for(self, budget_limit_gb: Optional[float]) -> Optional[float]:
        return budget_limit_gb if budget_limit_gb is not None else self.default_budget_gb

    async def execute(
        self,
        query: Union[str, QueryRequest],
        budget_limit_gb: Optional[float] = None,
        **request_options: Any,
    ) -> Optional[QueryExecutionResult]:
        """Execute a query under the session budget.

        Args:
            query: Query text or a prepared request
            budget_limit_gb: Budget for this call; the session default applies when omitted
            **request_options: ``max_result_records`` / ``max_result_bytes`` for text queries

        Raises:
            QueryGuardError: If request options accompany a prepared request
        """
        request = _as_request(query, request_options)
        return await self.engine.execute(
            request,
            self._budget_for(budget_limit_gb),
            max_poll_attempts=self.max_poll_attempts,
            timeout_seconds=self.timeout_seconds,
        )

    @traced("queryguard.session.verify")
    async def verify(
        self,
        query: Union[str, QueryRequest],
        **request_options: Any,
    ) -> QueryVerification:
        """Check a query without executing it.

        Verification scans no data, so no budget is checked or charged.

        Raises:
            QueryGuardError: If the session has no verifier
            ServiceError: If the verifier fails
        """
        if self.verifier is None:
            raise configuration_error("No query verifier is configured", config_key="verifier")

        request = _as_request(query, request_options)
        try:
            verification = await self.verifier.verify(request)
        except QueryGuardError:
            raise
        except Exception as exc:
            raise ServiceError.from_exception(exc, "verify", ErrorCode.VERIFY_ERROR) from exc

        logger.info(
            "Query verified",
            extra={"valid": verification.valid, "notifications": len(verification.notifications)},
        )
        return verification

    @staticmethod
    def is_chart_worthy(types: Optional[Iterable[Union[RangedFieldTypes, Mapping[str, Any]]]]) -> bool:
        return _classify(types)

    def try_acquire_rate_slot(self) -> bool:
        """Take a rate limit slot; always succeeds when rate limiting is disabled."""
        if self.rate_limiter is None:
            return True
        return self.rate_limiter.try_acquire()

    def budget_state(self, budget_limit_gb: Optional[float] = None) -> Optional[BudgetState]:
        """Current state of the budget for ``budget_limit_gb``.

        Returns None when no budget applies or no query was run against it yet.
        """
        limit = self._budget_for(budget_limit_gb)
        if limit is None:
            return None
        tracker = self.budgets.peek(limit)
        return tracker.state if tracker is not None else None

    def reset(self) -> None:
        """Clear consumption and rate limit state."""
        self.budgets.reset()
        if self.rate_limiter is not None:
            self.rate_limiter.reset()
        logger.info("Session state reset")

    async def _execute_query_tool(
        self,
        query: str,
        budget_limit_gb: Optional[float] = None,
        max_result_records: Optional[int] = None,
        max_result_bytes: Optional[int] = None,
    ) -> str:
        result = await self.execute(
            QueryRequest(
                query=query,
                max_result_records=max_result_records,
                max_result_bytes=max_result_bytes,
            ),
            budget_limit_gb,
        )
        return format_query_response(result)

    async def _verify_query_tool(self, query: str) -> str:
        verification = await self.verify(query)
        return format_verification_response(verification, execute_tool=EXECUTE_QUERY_TOOL)


def _as_request(query: Union[str, QueryRequest], request_options: Mapping[str, Any]) -> QueryRequest:
    if not isinstance(query, QueryRequest):
        return QueryRequest(query=query, **request_options)
    if request_options:
        raise validation_error(
            "Request options cannot be combined with a prepared QueryRequest",
            field="request_options",
            value=sorted(request_options),
        )
    return query


def _settings_error(exc: ValidationError) -> QueryGuardError:
    first = exc.errors()[0]
    config_key = "__".join(str(part) for part in first["loc"])
    return configuration_error(
        f"Invalid queryguard settings: {config_key}: {first['msg']}",
        config_key=config_key,
        cause=exc,
    )
