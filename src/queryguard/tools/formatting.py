"""Text rendering of query results for tool responses.

The rendered text is markdown consumed by both language models and the
result viewer. The viewer parses it line by line, so the line shapes below
are part of the contract:

- metadata lines read ``- **<Label>:** <value>``
- the scanned bytes line optionally carries budget info in parentheses,
  ``- **Scanned Bytes:** 1.20 GB (Session total: 3.40 GB / 5 GB budget)``
- warnings start with ``⚠️``, informational hints with ``💡``
- records follow in a single fenced ``json`` block

Verification verdicts list one ``* SEVERITY: message`` line per notification
followed by a single valid or invalid verdict line.
"""

import json
from typing import List, Optional

from queryguard.constants.query import BYTES_PER_GB
from queryguard.types.budget import BudgetState
from queryguard.types.query import QueryExecutionResult, QueryVerification

NO_RESULT_MESSAGE = (
    "The query finished without a result. It may have failed or been cancelled "
    "by the query service."
)


def _gb(num_bytes: int) -> str:
    return f"{num_bytes / BYTES_PER_GB:.2f} GB"


def _budget_info(state: BudgetState) -> str:
    return f"Session total: {state.consumed_gb:.2f} GB / {state.limit_gb:g} GB budget"


def _metadata_lines(result: QueryExecutionResult) -> List[str]:
    lines = [f"- **Records:** {result.record_count}"]

    if result.scanned_records is not None:
        lines.append(f"- **Scanned Records:** {result.scanned_records:,}")

    if result.scanned_bytes is not None:
        scanned = _gb(result.scanned_bytes)
        state = result.budget_state
        if state is not None and state.limit_bytes is not None:
            scanned = f"{scanned} ({_budget_info(state)})"
        lines.append(f"- **Scanned Bytes:** {scanned}")

    if result.execution_time_milliseconds is not None:
        lines.append(f"- **Execution Time:** {result.execution_time_milliseconds} ms")

    if result.query_id:
        lines.append(f"- **Query ID:** {result.query_id}")

    return lines


def _notice_lines(result: QueryExecutionResult) -> List[str]:
    lines = []
    state = result.budget_state

    if state is not None and state.is_exceeded:
        lines.append(
            f"⚠️ **Budget exceeded:** This session has scanned {state.consumed_gb:.2f} GB "
            f"of its {state.limit_gb:g} GB budget. Further queries will be rejected until "
            f"the budget is reset."
        )

    if result.sampled:
        lines.append(
            "⚠️ **Sampled results:** The query service sampled the data; "
            "counts and aggregates are approximate."
        )

    if result.scanned_bytes == 0:
        lines.append("💡 **No Data consumed:** This query did not scan any billable data.")

    if result.chart_worthy:
        lines.append(
            "💡 **Chart:** The result looks like a time series and can be rendered as a chart."
        )

    return lines


def format_query_response(result: Optional[QueryExecutionResult]) -> str:
    """Render a query result (or its absence) as tool response text."""
    if result is None:
        return NO_RESULT_MESSAGE

    sections = ["Query result:", "\n".join(_metadata_lines(result))]

    notices = _notice_lines(result)
    if notices:
        sections.append("\n".join(notices))

    records = json.dumps(result.records, indent=2, default=str, ensure_ascii=False)
    sections.append(f"```json\n{records}\n```")

    return "\n\n".join(sections)


def format_verification_response(
    verification: QueryVerification,
    execute_tool: str = "execute_query",
) -> str:
    """Render a verification verdict as tool response text.

    Args:
        verification: Verdict returned by the query verifier
        execute_tool: Tool the caller is pointed to when the query is valid
    """
    lines = ["Query verification:"]

    if verification.notifications:
        lines.append("Please consider the following notifications when adapting your query:")
        lines.extend(
            f"* {notification.severity}: {notification.message}"
            for notification in verification.notifications
        )

    if verification.valid:
        lines.append(f'The query is valid - you can run it with the "{execute_tool}" tool.')
    else:
        lines.append("The query is invalid. Please adapt your query.")

    return "\n".join(lines)
