"""Tests for wire models and exceptions."""

import pytest
from pydantic import ValidationError

from queryguard.common.exceptions import (
    ErrorCode,
    ExecutionTimeout,
    ServiceError,
    configuration_error,
)
from queryguard.constants.query import FieldType, QueryState
from queryguard.types import (
    FieldTypeDescriptor,
    QueryHandle,
    QueryPollResponse,
    QueryRequest,
    QueryResult,
)


class TestWireModels:
    """Test parsing of query service payloads."""

    def test_camel_case_payload(self):
        handle = QueryHandle.model_validate(
            {
                "state": "RUNNING",
                "continuationToken": "tok",
                "result": {
                    "records": [{"a": 1}],
                    "types": [{"indexRange": [0, 0], "mappings": {"a": {"type": "long"}}}],
                    "metadata": {"scannedBytes": 10, "queryId": "q", "unknownField": True},
                },
            }
        )

        assert handle.continuation_token == "tok"
        assert handle.result.metadata.scanned_bytes == 10
        assert handle.result.types[0].index_range == (0, 0)
        assert handle.result.types[0].mappings["a"].type == "long"

    def test_known_type_tags_become_field_types(self):
        descriptor = FieldTypeDescriptor.model_validate(
            {"type": "array", "types": [{"mappings": {"element": {"type": "double"}}}]}
        )

        assert descriptor.type is FieldType.ARRAY
        assert descriptor.types[0].mappings["element"].type is FieldType.DOUBLE
        assert descriptor.to_dict()["type"] == "array"

    def test_unknown_type_tags_pass_through(self):
        descriptor = FieldTypeDescriptor(type="geo_point")

        assert descriptor.type == "geo_point"
        assert not isinstance(descriptor.type, FieldType)

    def test_snake_case_construction(self):
        handle = QueryHandle(state=QueryState.RUNNING, continuation_token="tok")
        assert handle.state == "RUNNING"

    def test_state_is_normalized(self):
        assert QueryPollResponse(state="completed").state == "COMPLETED"

    def test_result_defaults(self):
        result = QueryResult()
        assert result.records == []
        assert result.metadata.scanned_bytes is None

    def test_negative_scanned_bytes_rejected(self):
        with pytest.raises(ValidationError):
            QueryResult.model_validate({"metadata": {"scannedBytes": -1}})

    def test_request_is_immutable(self):
        request = QueryRequest(query="fetch logs")
        with pytest.raises(ValidationError):
            request.query = "fetch spans"

    @pytest.mark.parametrize("kwargs", [{"query": ""}, {"query": "q", "max_result_records": 0}])
    def test_request_validation(self, kwargs):
        with pytest.raises(ValidationError):
            QueryRequest(**kwargs)


class TestExceptions:
    """Test error payloads."""

    def test_to_dict(self):
        error = ExecutionTimeout(continuation_token="tok", attempts=3)
        data = error.to_dict()

        assert data["type"] == "ExecutionTimeout"
        assert data["error_code"] == ErrorCode.EXECUTION_TIMEOUT.value
        assert data["details"] == {"continuation_token": "tok", "attempts": 3}
        assert data["is_retryable"] is True

    def test_str_includes_cause(self):
        error = ServiceError.from_exception(ValueError("bad"), "submit")
        assert str(error).startswith(f"[{ErrorCode.SERVICE_ERROR.value}] Query service submit failed")
        assert "caused by: ValueError: bad" in str(error)

    def test_status_from_attached_response(self):
        class Response:
            status_code = 429
            text = "too many requests"

        class ClientError(Exception):
            response = Response()

        error = ServiceError.from_exception(ClientError("rejected"), "poll")
        assert error.status == 429
        assert error.body == "too many requests"

    def test_configuration_error(self):
        error = configuration_error("missing endpoint", config_key="endpoint")
        assert error.error_code == ErrorCode.CONFIG_ERROR
        assert error.details == {"config_key": "endpoint"}
