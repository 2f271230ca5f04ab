"""Shared fixtures for queryguard tests."""

from typing import List

import pytest

from queryguard.budget import BudgetRegistry


class FakeClock:
    """Millisecond clock advanced explicitly by tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingSleep:
    """Awaitable sleep replacement that returns immediately."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def budgets():
    return BudgetRegistry()


def make_result(scanned_bytes=1000, records=None, types=None, **metadata):
    """Query result payload in the service's wire format."""
    meta = {"scannedBytes": scanned_bytes, **metadata}
    return {
        "records": records if records is not None else [{"host": "web-1", "count": 3}],
        "types": types or [],
        "metadata": meta,
    }


@pytest.fixture
def result_payload():
    return make_result
