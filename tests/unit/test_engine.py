"""Tests for the query execution engine."""

import asyncio
from unittest.mock import Mock

import pytest

from queryguard.common.exceptions import (
    BudgetExceeded,
    ErrorCode,
    ExecutionAborted,
    ExecutionTimeout,
    QueryGuardError,
    ServiceError,
)
from queryguard.engine import QueryExecutionEngine
from queryguard.monitoring import MetricsCollector
from queryguard.protocols import QueryService
from queryguard.services import ScriptedQueryService
from queryguard.types.query import QueryRequest

REQUEST = QueryRequest(query="fetch logs | limit 10")


class HttpError(Exception):
    """Transport error shaped like a typical HTTP client exception."""

    def __init__(self, message, status_code, body):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _run(coro):
    return asyncio.run(coro)


class TestFastPath:
    """Test submissions answered with an immediate result."""

    def test_immediate_result(self, budgets, sleep, result_payload):
        service = ScriptedQueryService(
            submit_response={
                "state": "RUNNING",
                "result": result_payload(
                    scanned_bytes=1000,
                    scannedRecords=1,
                    executionTimeMilliseconds=100,
                    queryId="q-1",
                ),
            }
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        result = _run(engine.execute(REQUEST, budget_limit_gb=1))

        assert service.submitted == [REQUEST]
        assert service.polled == []
        assert sleep.calls == []
        assert result.records == [{"host": "web-1", "count": 3}]
        assert result.scanned_bytes == 1000
        assert result.scanned_records == 1
        assert result.execution_time_milliseconds == 100
        assert result.query_id == "q-1"
        assert result.budget_state.consumed_bytes == 1000
        assert result.budget_state.is_exceeded is False

    def test_chart_flag_is_computed(self, budgets, result_payload):
        types = [{"mappings": {"timeframe": {"type": "timeframe"}, "avg": {"type": "double"}}}]
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(types=types)}
        )
        result = _run(QueryExecutionEngine(service, budgets).execute(REQUEST))

        assert result.chart_worthy is True
        assert result.types[0].mappings["avg"].type == "double"

    def test_missing_scanned_bytes_counts_as_zero(self, budgets):
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": {"records": [], "types": []}}
        )
        result = _run(QueryExecutionEngine(service, budgets).execute(REQUEST, budget_limit_gb=1))

        assert result.scanned_bytes is None
        assert result.budget_state.consumed_bytes == 0


class TestPolling:
    """Test the submit and poll lifecycle."""

    def test_running_then_completed(self, budgets, sleep, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
            poll_responses=[
                {"state": "RUNNING"},
                {"state": "COMPLETED", "result": result_payload(scanned_bytes=1000)},
            ],
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        result = _run(engine.execute(REQUEST, budget_limit_gb=1))

        assert sleep.calls == [2.0]
        assert service.polled == ["tok", "tok"]
        assert budgets.get(1).consumed_bytes == 1000
        assert result.budget_state.consumed_bytes == 1000
        assert result.records == [{"host": "web-1", "count": 3}]

    def test_not_started_keeps_polling(self, budgets, sleep, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "NOT_STARTED", "continuationToken": "tok"},
            poll_responses=[
                {"state": "NOT_STARTED"},
                {"state": "RUNNING"},
                {"state": "COMPLETED", "result": result_payload()},
            ],
        )
        engine = QueryExecutionEngine(service, budgets, poll_interval_seconds=0.5, sleep=sleep)

        assert _run(engine.execute(REQUEST)) is not None
        assert len(service.polled) == 3
        assert sleep.calls == [0.5, 0.5]

    @pytest.mark.parametrize("state", ["FAILED", "CANCELLED", "RESULT_GONE", "SOMETHING_NEW"])
    def test_terminal_state_without_result(self, budgets, sleep, state):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
            poll_responses=[{"state": state}],
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        assert _run(engine.execute(REQUEST, budget_limit_gb=1)) is None
        assert budgets.get(1).consumed_bytes == 0

    def test_aborted_while_polling_raises(self, budgets, sleep):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
            poll_responses=[{"state": "RUNNING"}, {"state": "ABORTED"}],
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        with pytest.raises(ExecutionAborted) as exc_info:
            _run(engine.execute(REQUEST))

        assert exc_info.value.error_code == ErrorCode.EXECUTION_ABORTED
        assert exc_info.value.details["continuation_token"] == "tok"

    def test_aborted_submit_with_token_raises(self, budgets):
        service = ScriptedQueryService(
            submit_response={"state": "ABORTED", "continuationToken": "tok"},
        )
        with pytest.raises(ExecutionAborted):
            _run(QueryExecutionEngine(service, budgets).execute(REQUEST))
        assert service.polled == []

    def test_lowercase_state_is_normalized(self, budgets, sleep, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "running", "continuationToken": "tok"},
            poll_responses=[{"state": "running"}, {"state": "completed", "result": result_payload()}],
        )
        assert _run(QueryExecutionEngine(service, budgets, sleep=sleep).execute(REQUEST)) is not None
        assert len(service.polled) == 2


class TestNoResult:
    """Test submissions that end without a result."""

    def test_aborted_without_token(self, budgets):
        service = ScriptedQueryService(submit_response={"state": "ABORTED"})

        assert _run(QueryExecutionEngine(service, budgets).execute(REQUEST)) is None
        assert service.polled == []

    def test_running_without_token(self, budgets):
        service = ScriptedQueryService(submit_response={"state": "RUNNING"})

        assert _run(QueryExecutionEngine(service, budgets).execute(REQUEST, budget_limit_gb=1)) is None
        assert budgets.get(1).consumed_bytes == 0


class TestBudget:
    """Test budget enforcement around execution."""

    def test_exceeded_budget_blocks_submit(self, budgets):
        budgets.get(0.001).add_bytes_scanned(2 * 1000 * 1000)
        service = ScriptedQueryService()

        with pytest.raises(BudgetExceeded, match="budget") as exc_info:
            _run(QueryExecutionEngine(service, budgets).execute(REQUEST, budget_limit_gb=0.001))

        assert service.submitted == []
        assert exc_info.value.consumed_bytes == 2_000_000
        assert exc_info.value.limit_bytes == 1_000_000
        assert exc_info.value.error_code == ErrorCode.BUDGET_EXCEEDED

    def test_budget_at_limit_still_allows_submit(self, budgets, result_payload):
        budgets.get(0.000001).add_bytes_scanned(1000)
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(scanned_bytes=1)}
        )

        result = _run(QueryExecutionEngine(service, budgets).execute(REQUEST, budget_limit_gb=0.000001))

        assert len(service.submitted) == 1
        assert result.budget_state.consumed_bytes == 1001
        assert result.budget_state.is_exceeded is True

    def test_query_that_crosses_limit_blocks_the_next(self, budgets, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(scanned_bytes=2_000_000)}
        )
        engine = QueryExecutionEngine(service, budgets)

        first = _run(engine.execute(REQUEST, budget_limit_gb=0.001))
        assert first.budget_state.is_exceeded is True

        with pytest.raises(BudgetExceeded):
            _run(engine.execute(REQUEST, budget_limit_gb=0.001))
        assert len(service.submitted) == 1

    def test_no_budget_creates_no_state(self, budgets, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(scanned_bytes=10 ** 12)}
        )
        engine = QueryExecutionEngine(service, budgets)

        for _ in range(3):
            result = _run(engine.execute(REQUEST))
            assert result.budget_state is None
            assert result.scanned_bytes == 10 ** 12

        assert len(budgets) == 0

    def test_limits_are_tracked_separately(self, budgets, result_payload):
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(scanned_bytes=500)}
        )
        engine = QueryExecutionEngine(service, budgets)

        _run(engine.execute(REQUEST, budget_limit_gb=1))
        _run(engine.execute(REQUEST, budget_limit_gb=1))
        _run(engine.execute(REQUEST, budget_limit_gb=2))

        assert budgets.get(1).consumed_bytes == 1000
        assert budgets.get(2).consumed_bytes == 500


class TestServiceErrors:
    """Test translation of transport failures."""

    def test_submit_failure(self, budgets):
        service = ScriptedQueryService(
            submit_response=HttpError("forbidden", 403, {"error": "missing scope"})
        )

        with pytest.raises(ServiceError) as exc_info:
            _run(QueryExecutionEngine(service, budgets).execute(REQUEST, budget_limit_gb=1))

        error = exc_info.value
        assert error.error_code == ErrorCode.SUBMIT_ERROR
        assert error.status == 403
        assert error.body == {"error": "missing scope"}
        assert isinstance(error.cause, HttpError)
        assert budgets.get(1).consumed_bytes == 0

    def test_poll_failure(self, budgets, sleep):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
            poll_responses=[{"state": "RUNNING"}, ConnectionError("connection reset")],
        )

        with pytest.raises(ServiceError) as exc_info:
            _run(QueryExecutionEngine(service, budgets, sleep=sleep).execute(REQUEST))

        assert exc_info.value.error_code == ErrorCode.POLL_ERROR
        assert exc_info.value.status is None
        assert len(service.polled) == 2

    def test_queryguard_errors_pass_through(self, budgets):
        original = ServiceError("upstream unavailable", status=503)
        service = ScriptedQueryService(submit_response=original)

        with pytest.raises(ServiceError) as exc_info:
            _run(QueryExecutionEngine(service, budgets).execute(REQUEST))

        assert exc_info.value is original


class TestTimeouts:
    """Test bounded polling and caller deadlines."""

    def test_poll_attempts_exhausted(self, budgets, sleep):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        with pytest.raises(ExecutionTimeout) as exc_info:
            _run(engine.execute(REQUEST, max_poll_attempts=3))

        assert len(service.polled) == 3
        assert len(sleep.calls) == 2
        assert service.cancelled == ["tok"]
        assert exc_info.value.details["attempts"] == 3
        assert exc_info.value.is_retryable

    def test_cancel_failure_does_not_mask_timeout(self, budgets, sleep):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
            cancel_error=RuntimeError("cancel failed"),
        )
        engine = QueryExecutionEngine(service, budgets, sleep=sleep)

        with pytest.raises(ExecutionTimeout):
            _run(engine.execute(REQUEST, max_poll_attempts=1))

        assert service.cancelled == ["tok"]

    def test_deadline_interrupts_poll_wait(self, budgets):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
        )
        engine = QueryExecutionEngine(service, budgets, poll_interval_seconds=30)

        with pytest.raises(ExecutionTimeout) as exc_info:
            _run(engine.execute(REQUEST, timeout_seconds=0.05))

        assert service.polled == ["tok"]
        assert service.cancelled == ["tok"]
        assert exc_info.value.error_code == ErrorCode.EXECUTION_TIMEOUT

    def test_task_cancellation_cancels_remote_query(self, budgets):
        service = ScriptedQueryService(
            submit_response={"state": "RUNNING", "continuationToken": "tok"},
        )
        engine = QueryExecutionEngine(service, budgets, poll_interval_seconds=30)

        async def scenario():
            task = asyncio.ensure_future(engine.execute(REQUEST))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        _run(scenario())
        assert service.cancelled == ["tok"]

    @pytest.mark.parametrize(
        "kwargs", [{"max_poll_attempts": 0}, {"timeout_seconds": 0}, {"timeout_seconds": -1}]
    )
    def test_invalid_bounds(self, budgets, kwargs):
        service = ScriptedQueryService()
        with pytest.raises(QueryGuardError):
            _run(QueryExecutionEngine(service, budgets).execute(REQUEST, **kwargs))
        assert service.submitted == []


class TestMetrics:
    """Test query outcome reporting."""

    def test_outcomes_are_recorded(self, budgets, result_payload):
        metrics = Mock(spec=MetricsCollector)
        service = ScriptedQueryService(
            submit_response={"state": "COMPLETED", "result": result_payload(scanned_bytes=42)}
        )
        engine = QueryExecutionEngine(service, budgets, metrics=metrics)

        _run(engine.execute(REQUEST))

        recorded = metrics.record_query.call_args.args[0]
        assert recorded.outcome == "completed"
        assert recorded.scanned_bytes == 42

    def test_budget_rejection_is_recorded(self, budgets):
        budgets.get(0.001).add_bytes_scanned(2_000_000)
        metrics = Mock(spec=MetricsCollector)
        engine = QueryExecutionEngine(ScriptedQueryService(), budgets, metrics=metrics)

        with pytest.raises(BudgetExceeded):
            _run(engine.execute(REQUEST, budget_limit_gb=0.001))

        assert metrics.record_query.call_args.args[0].outcome == "budget_exceeded"


def test_scripted_service_satisfies_protocol():
    assert isinstance(ScriptedQueryService(), QueryService)


def test_default_registry_is_private():
    first = QueryExecutionEngine(ScriptedQueryService())
    second = QueryExecutionEngine(ScriptedQueryService())
    assert first.budgets is not second.budgets
