"""Tests for tool response rendering."""

import json

from queryguard.tools import NO_RESULT_MESSAGE, format_query_response, format_verification_response
from queryguard.types import BudgetState, QueryExecutionResult, QueryVerification


def _result(**overrides):
    values = {
        "records": [{"host": "web-1", "count": 3}],
        "scanned_bytes": 1_200_000_000,
        "scanned_records": 12345,
        "execution_time_milliseconds": 87,
        "query_id": "q-1",
    }
    values.update(overrides)
    return QueryExecutionResult(**values)


def _json_block(text):
    return json.loads(text.split("```json\n", 1)[1].split("\n```", 1)[0])


class TestFormatQueryResponse:
    """Test markdown rendering of query results."""

    def test_none_renders_no_result(self):
        assert format_query_response(None) == NO_RESULT_MESSAGE

    def test_metadata_lines(self):
        text = format_query_response(_result())

        assert "- **Records:** 1" in text
        assert "- **Scanned Records:** 12,345" in text
        assert "- **Scanned Bytes:** 1.20 GB\n" in text
        assert "- **Execution Time:** 87 ms" in text
        assert "- **Query ID:** q-1" in text
        assert "⚠️" not in text
        assert "💡" not in text

    def test_records_block(self):
        records = [{"host": "web-1", "count": 3}, {"host": "web-2", "count": None}]
        assert _json_block(format_query_response(_result(records=records))) == records

    def test_budget_info_on_scanned_bytes_line(self):
        state = BudgetState(limit_bytes=5_000_000_000, consumed_bytes=3_400_000_000)
        text = format_query_response(_result(budget_state=state))

        assert "- **Scanned Bytes:** 1.20 GB (Session total: 3.40 GB / 5 GB budget)" in text
        assert "Budget exceeded" not in text

    def test_budget_exceeded_warning(self):
        state = BudgetState(limit_bytes=1_000_000_000, consumed_bytes=1_200_000_000)
        text = format_query_response(_result(budget_state=state))

        assert "⚠️ **Budget exceeded:**" in text

    def test_sampled_warning(self):
        assert "⚠️ **Sampled results:**" in format_query_response(_result(sampled=True))

    def test_chart_hint(self):
        assert "💡 **Chart:**" in format_query_response(_result(chart_worthy=True))

    def test_no_data_consumed_hint(self):
        assert "💡 **No Data consumed:**" in format_query_response(_result(scanned_bytes=0))

    def test_optional_metadata_omitted(self):
        result = QueryExecutionResult(records=[])
        text = format_query_response(result)

        assert "- **Records:** 0" in text
        assert "Scanned Bytes" not in text
        assert "Query ID" not in text
        assert _json_block(text) == []


class TestFormatVerificationResponse:
    """Test rendering of verification verdicts."""

    def test_valid_without_notifications(self):
        text = format_verification_response(QueryVerification(valid=True))

        assert text == (
            "Query verification:\n"
            'The query is valid - you can run it with the "execute_query" tool.'
        )

    def test_invalid_lists_notifications(self):
        verification = QueryVerification.model_validate(
            {
                "valid": False,
                "notifications": [
                    {"severity": "error", "message": "Unknown command 'fech'", "notificationType": "SYNTAX"},
                    {"severity": "WARNING", "message": "Scans all buckets"},
                ],
            }
        )

        lines = format_verification_response(verification).splitlines()

        assert lines[2:] == [
            "* ERROR: Unknown command 'fech'",
            "* WARNING: Scans all buckets",
            "The query is invalid. Please adapt your query.",
        ]
        assert verification.notifications[0].notification_type == "SYNTAX"
