"""Scripted query service for testing and development.

This module provides the ScriptedQueryService class which implements the
QueryService and QueryVerifier protocols by replaying canned responses,
without requiring a query backend.
"""

from collections import deque
from typing import Any, Deque, Iterable, List, Mapping, Optional, Union

from queryguard.constants.query import QueryState
from queryguard.types.query import QueryHandle, QueryPollResponse, QueryRequest, QueryVerification

SubmitScript = Union[QueryHandle, Mapping[str, Any], Exception]
PollScript = Union[QueryPollResponse, Mapping[str, Any], Exception]
VerifyScript = Union[QueryVerification, Mapping[str, Any], Exception]


class ScriptedQueryService:
    """Query service replaying predefined responses.

    Poll responses are consumed in order; once the script is exhausted the
    last response is repeated, which models a query that never finishes.
    Every call is recorded for later assertions.

    Attributes:
        submitted: Requests passed to ``submit``
        polled: Continuation tokens passed to ``poll``
        cancelled: Continuation tokens passed to ``cancel``
        verified: Requests passed to ``verify``
    """

    def __init__(
        self,
        submit_response: Optional[SubmitScript] = None,
        poll_responses: Optional[Iterable[PollScript]] = None,
        cancel_error: Optional[Exception] = None,
        verification: Optional[VerifyScript] = None,
    ):
        """Initialize scripted service.

        Args:
            submit_response: Handle (or mapping in wire format) returned by
                ``submit``; an exception instance is raised instead
            poll_responses: Responses returned by successive ``poll`` calls;
                exception instances are raised instead
            cancel_error: Exception raised by ``cancel``, if any
            verification: Verdict returned by ``verify``; defaults to valid
                without notifications, an exception instance is raised instead
        """
        self.submit_response = submit_response if submit_response is not None else QueryHandle(
            state=QueryState.COMPLETED
        )
        self._poll_script: Deque[PollScript] = deque(poll_responses or [])
        self._last_poll: Optional[PollScript] = None
        self.cancel_error = cancel_error
        self.verification = verification if verification is not None else QueryVerification(valid=True)

        self.submitted: List[QueryRequest] = []
        self.polled: List[str] = []
        self.cancelled: List[str] = []
        self.verified: List[QueryRequest] = []

    async def submit(self, request: QueryRequest) -> QueryHandle:
        self.submitted.append(request)
        if isinstance(self.submit_response, Exception):
            raise self.submit_response
        if isinstance(self.submit_response, QueryHandle):
            return self.submit_response
        return QueryHandle.model_validate(self.submit_response)

    async def poll(self, continuation_token: str) -> QueryPollResponse:
        self.polled.append(continuation_token)
        if self._poll_script:
            self._last_poll = self._poll_script.popleft()
        response = self._last_poll
        if response is None:
            response = QueryPollResponse(state=QueryState.RUNNING)

        if isinstance(response, Exception):
            raise response
        if isinstance(response, QueryPollResponse):
            return response
        return QueryPollResponse.model_validate(response)

    async def cancel(self, continuation_token: str) -> None:
        self.cancelled.append(continuation_token)
        if self.cancel_error is not None:
            raise self.cancel_error

    async def verify(self, request: QueryRequest) -> QueryVerification:
        self.verified.append(request)
        if isinstance(self.verification, Exception):
            raise self.verification
        if isinstance(self.verification, QueryVerification):
            return self.verification
        return QueryVerification.model_validate(self.verification)
