"""Query service protocol definitions.

The query engine depends on the query service only through this protocol.
Vendor specific clients (authentication, REST payload shapes) live behind
it and are not part of this package.
"""

from typing import Protocol, runtime_checkable

from queryguard.types.query import QueryHandle, QueryPollResponse, QueryRequest, QueryVerification


@runtime_checkable
class QueryService(Protocol):
    """Asynchronous submit/poll/cancel capability of a query backend.

    Implementations raise on transport level failures (connection errors,
    non-2xx HTTP responses). Business level failures are reported through a
    terminal, non-``COMPLETED`` state instead.

    The protocol is marked as runtime_checkable to allow isinstance()
    checks at runtime, which is useful for validation and testing.
    """

    async def submit(self, request: QueryRequest) -> QueryHandle:
        """Submit a query.

        Args:
            request: Query to execute

        Returns:
            Handle carrying either the result or a continuation token
        """
        ...

    async def poll(self, continuation_token: str) -> QueryPollResponse:
        """Poll a running query.

        Args:
            continuation_token: Token returned by ``submit``

        Returns:
            Current state, plus the result once the query completed
        """
        ...

    async def cancel(self, continuation_token: str) -> None:
        """Request cancellation of a running query.

        Args:
            continuation_token: Token returned by ``submit``
        """
        ...


@runtime_checkable
class QueryVerifier(Protocol):
    """Checks a query for errors without executing it.

    Verification scans no data and is therefore never charged against a
    consumption budget. A query service client may implement this protocol
    next to ``QueryService``.
    """

    async def verify(self, request: QueryRequest) -> QueryVerification:
        """Verify a query.

        Args:
            request: Query to check

        Returns:
            Verdict plus the notifications reported by the service
        """
        ...
