"""Query execution constants and enumerations.

This module defines the states reported by the query service, the type tags
used in result schemas and the numeric defaults shared by the engine, the
budget tracker and the rate limiter.
"""

from enum import Enum


class QueryState(str, Enum):
    """Execution state of a submitted query.

    The query service reports one of these values on submit and on every
    poll. Services may report states not listed here; the engine treats any
    value outside ``CONTINUE_POLLING_STATES`` as terminal.

    Values:
        NOT_STARTED: Query accepted but not yet scheduled.
        RUNNING: Query actively executing.
        COMPLETED: Query finished; the response carries the result.
        ABORTED: Query was aborted by the service.
        FAILED: Query terminated due to an error.
        CANCELLED: Query was cancelled on request.
        RESULT_GONE: Result expired before it was fetched.

    State Transitions:
        NOT_STARTED -> RUNNING -> COMPLETED
                              |-> ABORTED
                              |-> FAILED
                   |-> CANCELLED
    """

    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    RESULT_GONE = "RESULT_GONE"


CONTINUE_POLLING_STATES = frozenset({QueryState.NOT_STARTED.value, QueryState.RUNNING.value})


class FieldType(str, Enum):
    """Type tag of a result column.

    ``ARRAY`` and ``RECORD`` columns carry a nested list of ranged field
    types describing their elements or fields.
    """

    STRING = "string"
    DOUBLE = "double"
    LONG = "long"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    TIMEFRAME = "timeframe"
    DURATION = "duration"
    ARRAY = "array"
    RECORD = "record"
    IP_ADDRESS = "ip_address"
    UID = "uid"
    BINARY = "binary"
    SMARTSCAPE_ID = "smartscape_id"
    UNDEFINED = "undefined"


TIME_FIELD_TYPES = frozenset({FieldType.TIMEFRAME, FieldType.TIMESTAMP})
NUMERIC_FIELD_TYPES = frozenset({FieldType.DOUBLE, FieldType.LONG})

# Name of the single mapping that describes an array's element type
ARRAY_ELEMENT_KEY = "element"

# Budgets are declared in decimal gigabytes
BYTES_PER_GB = 1_000_000_000

DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_RATE_LIMIT_MAX_CALLS = 5
DEFAULT_RATE_LIMIT_WINDOW_MS = 20_000
