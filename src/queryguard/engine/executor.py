"""Query execution engine.

The engine drives a single query through its lifecycle against a
``QueryService``: budget pre-check, submission, polling until a terminal
state, budget accounting and schema classification.

Polling cadence:
    The first poll is issued right after a submission that returned a
    continuation token; each following poll waits ``poll_interval_seconds``
    first. The wait is an ``asyncio`` sleep, so a caller deadline or task
    cancellation interrupts it promptly.

Terminal states:
    - a result in the submit or poll response is terminal success
    - ``RUNNING`` / ``NOT_STARTED`` keep polling
    - ``ABORTED`` observed while a continuation token exists raises
      ``ExecutionAborted``
    - every other state ends the execution without a result (``None``)
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from queryguard.budget import BudgetRegistry, BudgetTracker
from queryguard.classification import is_chart_worthy
from queryguard.common.exceptions import (
    BudgetExceeded,
    ErrorCode,
    ExecutionAborted,
    ExecutionTimeout,
    QueryGuardError,
    ServiceError,
    validation_error,
)
from queryguard.constants.query import (
    CONTINUE_POLLING_STATES,
    DEFAULT_POLL_INTERVAL_SECONDS,
    QueryState,
)
from queryguard.logging import get_logger
from queryguard.monitoring import MetricsCollector, QueryMetrics
from queryguard.protocols import QueryService
from queryguard.types.query import QueryExecutionResult, QueryRequest, QueryResult
from queryguard.utils import traced

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def _execute_span_attributes(self, request, budget_limit_gb=None, **kwargs):
    return {
        "queryguard.query.max_result_records": request.max_result_records,
        "queryguard.query.max_result_bytes": request.max_result_bytes,
        "queryguard.budget.limit_gb": budget_limit_gb,
    }


class _Execution:
    """Mutable bookkeeping for one ``execute`` call."""

    def __init__(self) -> None:
        self.continuation_token: Optional[str] = None
        self.polls = 0
        self.cancel_requested = False
        self.started = time.perf_counter()

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self.started


class QueryExecutionEngine:
    """Submits queries and polls them to completion under a consumption budget.

    Budget trackers come from an injected ``BudgetRegistry``, so every
    session owns its own consumption state.

    Attributes:
        service: Query service the engine talks to
        budgets: Per-limit budget trackers
        poll_interval_seconds: Wait between consecutive polls

    Example:
        >>> engine = QueryExecutionEngine(service, BudgetRegistry())
        >>> result = await engine.execute(QueryRequest(query="fetch logs"), budget_limit_gb=5)
        >>> result.budget_state.consumed_bytes
        1000
    """

    def __init__(
        self,
        service: QueryService,
        budgets: Optional[BudgetRegistry] = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Optional[SleepFunc] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize the engine.

        Args:
            service: Query service implementation
            budgets: Budget registry; a private one is created if omitted
            poll_interval_seconds: Seconds to wait between polls
            sleep: Awaitable delay used between polls, ``asyncio.sleep`` by default
            metrics: Optional metrics collector for query outcomes
        """
        if poll_interval_seconds < 0:
            raise validation_error(
                "Poll interval must not be negative",
                field="poll_interval_seconds",
                value=poll_interval_seconds,
            )
        self.service = service
        self.budgets = budgets if budgets is not None else BudgetRegistry()
        self.poll_interval_seconds = poll_interval_seconds
        self._sleep = sleep or asyncio.sleep
        self.metrics = metrics

    @traced("queryguard.engine.execute", attribute_getter=_execute_span_attributes)
    async def execute(
        self,
        request: QueryRequest,
        budget_limit_gb: Optional[float] = None,
        *,
        max_poll_attempts: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Optional[QueryExecutionResult]:
        """Execute a query and return its normalized result.

        Args:
            request: Query to execute
            budget_limit_gb: Consumption budget in decimal gigabytes; no
                budget is tracked when omitted
            max_poll_attempts: Upper bound on poll requests
            timeout_seconds: Wall-clock bound on the whole execution

        Returns:
            The normalized result, or None when the query ended without one

        Raises:
            BudgetExceeded: The budget for ``budget_limit_gb`` is already exhausted
            ServiceError: Submitting or polling failed
            ExecutionAborted: The service aborted the query
            ExecutionTimeout: Poll attempts or the deadline ran out
        """
        if max_poll_attempts is not None and max_poll_attempts < 1:
            raise validation_error(
                "max_poll_attempts must be at least 1",
                field="max_poll_attempts",
                value=max_poll_attempts,
            )
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise validation_error(
                "timeout_seconds must be positive",
                field="timeout_seconds",
                value=timeout_seconds,
            )

        execution = _Execution()

        try:
            tracker = self._check_budget(budget_limit_gb)
            if timeout_seconds is None:
                result = await self._run(request, tracker, execution, max_poll_attempts)
            else:
                try:
                    result = await asyncio.wait_for(
                        self._run(request, tracker, execution, max_poll_attempts),
                        timeout=timeout_seconds,
                    )
                except asyncio.TimeoutError as exc:
                    await self._cancel_quietly(execution)
                    raise ExecutionTimeout(
                        message=f"Query execution exceeded the {timeout_seconds:g} second deadline",
                        continuation_token=execution.continuation_token,
                        attempts=execution.polls,
                        cause=exc,
                    ) from exc
        except QueryGuardError as exc:
            self._record(_outcome_for(exc), execution)
            raise

        if result is None:
            self._record("no_result", execution)
        else:
            self._record("completed", execution, scanned_bytes=result.scanned_bytes or 0)
        return result

    def _check_budget(self, budget_limit_gb: Optional[float]) -> Optional[BudgetTracker]:
        if budget_limit_gb is None:
            return None

        tracker = self.budgets.get(budget_limit_gb)
        state = tracker.state
        if state.is_exceeded:
            raise BudgetExceeded(
                consumed_bytes=state.consumed_bytes,
                limit_bytes=state.limit_bytes,
            )
        return tracker

    async def _run(
        self,
        request: QueryRequest,
        tracker: Optional[BudgetTracker],
        execution: _Execution,
        max_poll_attempts: Optional[int],
    ) -> Optional[QueryExecutionResult]:
        try:
            handle = await self.service.submit(request)
        except QueryGuardError:
            raise
        except Exception as exc:
            raise ServiceError.from_exception(exc, "submit", ErrorCode.SUBMIT_ERROR) from exc

        if handle.result is not None:
            return self._finalize(handle.result, tracker, "Query metadata (immediate)")

        if not handle.continuation_token:
            logger.warning(
                "Query submission returned neither a result nor a continuation token",
                extra={"state": handle.state},
            )
            return None

        execution.continuation_token = handle.continuation_token
        if handle.state == QueryState.ABORTED.value:
            raise ExecutionAborted(continuation_token=handle.continuation_token)

        try:
            return await self._poll_until_terminal(tracker, execution, max_poll_attempts)
        except asyncio.CancelledError:
            await self._cancel_quietly(execution)
            raise

    async def _poll_until_terminal(
        self,
        tracker: Optional[BudgetTracker],
        execution: _Execution,
        max_poll_attempts: Optional[int],
    ) -> Optional[QueryExecutionResult]:
        token = execution.continuation_token
        while True:
            if max_poll_attempts is not None and execution.polls >= max_poll_attempts:
                await self._cancel_quietly(execution)
                raise ExecutionTimeout(
                    message=f"Query did not finish within {max_poll_attempts} poll attempts",
                    continuation_token=token,
                    attempts=execution.polls,
                )

            if execution.polls:
                await self._sleep(self.poll_interval_seconds)

            try:
                response = await self.service.poll(token)
            except QueryGuardError:
                raise
            except Exception as exc:
                raise ServiceError.from_exception(exc, "poll", ErrorCode.POLL_ERROR) from exc
            execution.polls += 1

            if response.result is not None:
                return self._finalize(response.result, tracker, "Query metadata (polled)")

            if response.state in CONTINUE_POLLING_STATES:
                logger.debug(
                    "Query still running",
                    extra={"state": response.state, "polls": execution.polls},
                )
                continue

            if response.state == QueryState.ABORTED.value:
                raise ExecutionAborted(continuation_token=token)

            logger.warning(
                "Query ended without a result",
                extra={"state": response.state, "continuation_token": token, "polls": execution.polls},
            )
            return None

    def _finalize(
        self,
        result: QueryResult,
        tracker: Optional[BudgetTracker],
        message: str,
    ) -> QueryExecutionResult:
        metadata = result.metadata
        logger.info(
            message,
            extra={
                "scanned_bytes": metadata.scanned_bytes,
                "scanned_records": metadata.scanned_records,
                "execution_time_ms": metadata.execution_time_milliseconds,
                "query_id": metadata.query_id,
            },
        )

        budget_state = None
        if tracker is not None:
            budget_state = tracker.add_bytes_scanned(metadata.scanned_bytes or 0)

        return QueryExecutionResult(
            records=result.records,
            types=result.types,
            scanned_bytes=metadata.scanned_bytes,
            scanned_records=metadata.scanned_records,
            execution_time_milliseconds=metadata.execution_time_milliseconds,
            query_id=metadata.query_id,
            sampled=metadata.sampled,
            budget_state=budget_state,
            chart_worthy=is_chart_worthy(result.types),
        )

    async def _cancel_quietly(self, execution: _Execution) -> None:
        """Request cancellation once, without letting a failure replace the caller's error."""
        continuation_token = execution.continuation_token
        if not continuation_token or execution.cancel_requested:
            return
        execution.cancel_requested = True
        try:
            await self.service.cancel(continuation_token)
        except Exception as exc:
            logger.warning(
                "Failed to cancel query",
                extra={"continuation_token": continuation_token, "error": str(exc)},
            )

    def _record(self, outcome: str, execution: _Execution, scanned_bytes: int = 0) -> None:
        if self.metrics is None:
            return
        self.metrics.record_query(
            QueryMetrics(
                outcome=outcome,
                duration_seconds=execution.elapsed,
                scanned_bytes=scanned_bytes,
                polls=execution.polls,
            )
        )


def _outcome_for(exc: QueryGuardError) -> str:
    if isinstance(exc, BudgetExceeded):
        return "budget_exceeded"
    if isinstance(exc, ExecutionAborted):
        return "aborted"
    if isinstance(exc, ExecutionTimeout):
        return "timeout"
    if isinstance(exc, ServiceError):
        return "service_error"
    return "error"
