"""Fixtures for fixed point sync tests.

FakeGateway stands in for the plans API: it keeps the plan's records in
memory, records every call, and can be told which calls should fail.
"""

import asyncio
import itertools

import pytest

from app.plans.fixed_points.errors import FixedPointApiError
from app.plans.fixed_points.types import FixedPointFormItem, FixedPointRecord, OperationResult


class FakeGateway:
    def __init__(self, records: list[FixedPointRecord] | None = None) -> None:
        self.records: dict[str, FixedPointRecord] = {record.id: record for record in records or []}
        self.calls: list[tuple[str, ...]] = []
        self.list_error: Exception | None = None
        # (operation, key) -> message; key is the point ID, or the location for creates
        self.failures: dict[tuple[str, str], str] = {}
        self.raises: dict[tuple[str, str], Exception] = {}
        self.delays: dict[tuple[str, str], float] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self._ids = itertools.count(1)

    @property
    def mutating_calls(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] != "list"]

    def calls_of(self, operation: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == operation]

    async def _run(self, operation: str, key: str) -> str | None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get((operation, key), 0))
        finally:
            self.in_flight -= 1
        if (operation, key) in self.raises:
            raise self.raises[(operation, key)]
        return self.failures.get((operation, key))

    async def list_fixed_points(self, plan_id: str) -> list[FixedPointRecord]:
        self.calls.append(("list", plan_id))
        if self.list_error is not None:
            raise self.list_error
        return list(self.records.values())

    async def create_fixed_point(self, plan_id: str, item: FixedPointFormItem) -> OperationResult:
        self.calls.append(("create", plan_id, item.location))
        message = await self._run("create", item.location)
        if message:
            return OperationResult.failed(message, status_code=400)
        point_id = f"fp-new-{next(self._ids)}"
        self.records[point_id] = FixedPointRecord(
            id=point_id,
            plan_id=plan_id,
            location=item.location,
            event_at=item.event_at,
            event_duration=item.event_duration,
            description=item.description,
        )
        return OperationResult.succeeded({"id": point_id})

    async def update_fixed_point(self, plan_id: str, point_id: str, item: FixedPointFormItem) -> OperationResult:
        self.calls.append(("update", plan_id, point_id))
        message = await self._run("update", point_id)
        if message:
            return OperationResult.failed(message, status_code=404)
        return OperationResult.succeeded()

    async def delete_fixed_point(self, plan_id: str, point_id: str) -> OperationResult:
        self.calls.append(("delete", plan_id, point_id))
        message = await self._run("delete", point_id)
        if message:
            return OperationResult.failed(message, status_code=500)
        self.records.pop(point_id, None)
        return OperationResult.succeeded()


def _make_record(point_id: str, plan_id: str = "plan-1", location: str = "Somewhere") -> FixedPointRecord:
    return FixedPointRecord(
        id=point_id,
        plan_id=plan_id,
        location=location,
        event_at="2024-02-01T10:00:00.000Z",
        event_duration=60,
    )


def _make_item(point_id: str | None = None, location: str = "Somewhere", event_at: str = "2024-02-01T10:00") -> FixedPointFormItem:
    return FixedPointFormItem(id=point_id, location=location, event_at=event_at, event_duration=60)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def list_failure() -> FixedPointApiError:
    return FixedPointApiError("Failed to fetch fixed points (HTTP 500)", status_code=500)


@pytest.fixture
def make_record():
    """Factory for server records."""
    return _make_record


@pytest.fixture
def make_item():
    """Factory for client form items."""
    return _make_item
