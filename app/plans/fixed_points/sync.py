"""Fixed point synchronization engine.

Reconciles the client's list of fixed points for a plan with the server's
collection using the fewest create/update/delete calls:

1. List existing records. On failure, continue with no known IDs (no deletes this round)
2. Split items into updates (have an ID) and creates (no ID), keeping order
3. Stale IDs = existing IDs not referenced by any item
4. Dispatch all creates and the updates that change something, concurrently, and wait for every one to settle
5. If any failed, report them and skip deletes
6. Otherwise delete stale records, best-effort

A sync is not safe to run concurrently for the same plan; callers serialize.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from loguru import logger

from app.config.settings import settings
from app.plans.fixed_points.aggregate import aggregate_errors, describe_failure
from app.plans.fixed_points.client import FixedPointClient, FixedPointGateway
from app.plans.fixed_points.errors import FixedPointApiError
from app.plans.fixed_points.normalize import normalize_to_iso
from app.plans.fixed_points.types import (
    FixedPointFormItem,
    FixedPointRecord,
    OperationResult,
    SyncPlan,
    SyncResult,
)

T = TypeVar("T")


def plan_sync(items: Sequence[FixedPointFormItem], existing_ids: Sequence[str]) -> SyncPlan:
    """Compute the diff between desired items and existing record IDs.

    Args:
        items: Desired fixed points, in caller order
        existing_ids: IDs currently on the server, in listing order

    Returns:
        SyncPlan with updates and creates in item order and deletes in listing order
    """
    to_update = tuple(item for item in items if item.is_persisted)
    to_create = tuple(item for item in items if not item.is_persisted)
    referenced = {item.id for item in to_update}
    to_delete = tuple(dict.fromkeys(point_id for point_id in existing_ids if point_id not in referenced))
    return SyncPlan(to_update=to_update, to_create=to_create, to_delete=to_delete)


def matches_record(item: FixedPointFormItem, record: FixedPointRecord) -> bool:
    """Whether sending ``item`` as an update would leave ``record`` unchanged."""
    return (
        item.location == record.location
        and normalize_to_iso(item.event_at) == normalize_to_iso(record.event_at)
        and item.event_duration == record.event_duration
        and item.description == record.description
    )


class FixedPointSyncEngine:
    """Applies a plan's desired fixed points through a FixedPointGateway.

    Holds no state between calls other than its collaborator.
    """

    def __init__(self, gateway: FixedPointGateway, max_concurrency: int | None = None) -> None:
        self.gateway = gateway
        self.max_concurrency = max_concurrency if max_concurrency is not None else settings.sync_max_concurrency

    async def sync(self, plan_id: str, items: Sequence[FixedPointFormItem]) -> SyncResult:
        """Make the server's fixed points for ``plan_id`` match ``items``.

        Never raises for API failures; they are reported in the result.
        Mutations that succeeded stay persisted even when the result is a failure.
        """
        items = tuple(items)
        existing, listed = await self._existing_records(plan_id)
        plan = plan_sync(items, [record.id for record in existing])
        stored = {record.id: record for record in existing}

        logger.info(
            f"Fixed points sync: plan={plan_id} update={len(plan.to_update)} "
            f"create={len(plan.to_create)} delete={len(plan.to_delete)} listed={listed}"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        update_calls = [
            self._limited(semaphore, self._update(plan_id, item, stored.get(item.id)))
            for item in plan.to_update
        ]
        create_calls = [
            self._limited(semaphore, self.gateway.create_fixed_point(plan_id, item))
            for item in plan.to_create
        ]
        outcomes = await self._settle([*update_calls, *create_calls])
        update_outcomes = outcomes[: len(update_calls)]
        create_outcomes = outcomes[len(update_calls) :]

        errors = aggregate_errors("Update", update_outcomes) + aggregate_errors("Create", create_outcomes)
        if errors:
            for error in errors:
                logger.warning(f"Fixed points sync: plan={plan_id} {error}")
            logger.info(f"Fixed points sync: plan={plan_id} skipped {len(plan.to_delete)} deletion(s) after failures")
            return SyncResult(success=False, errors=errors)

        await self._delete_stale(plan_id, plan.to_delete, semaphore)

        logger.info(f"Fixed points sync: plan={plan_id} completed")
        return SyncResult(success=True, errors=[])

    async def _update(
        self, plan_id: str, item: FixedPointFormItem, record: FixedPointRecord | None
    ) -> OperationResult:
        # An update identical to the stored record is a no-op and counts as applied
        if record is not None and matches_record(item, record):
            return OperationResult.succeeded()
        return await self.gateway.update_fixed_point(plan_id, item.id, item)

    async def _existing_records(self, plan_id: str) -> tuple[list[FixedPointRecord], bool]:
        """Return (existing records, whether the listing succeeded)."""
        try:
            records = await self.gateway.list_fixed_points(plan_id)
        except FixedPointApiError as e:
            logger.warning(f"Fixed points sync: plan={plan_id} could not list existing points, deletions disabled: {e}")
            return [], False
        except Exception as e:
            logger.warning(
                f"Fixed points sync: plan={plan_id} unexpected error listing existing points, deletions disabled: {e!r}"
            )
            return [], False
        return list(records), True

    async def _delete_stale(self, plan_id: str, point_ids: Sequence[str], semaphore: asyncio.Semaphore | None) -> None:
        # Delete failures are logged only: never retried and never reported to the
        # caller. Reads degrade and writes report, but deletes stay silent.
        if not point_ids:
            return
        outcomes = await self._settle(
            [self._limited(semaphore, self.gateway.delete_fixed_point(plan_id, point_id)) for point_id in point_ids]
        )
        for point_id, outcome in zip(point_ids, outcomes, strict=True):
            message = describe_failure(outcome)
            if message is not None:
                logger.warning(f"Fixed points sync: plan={plan_id} failed to delete {point_id}: {message}")

    @staticmethod
    async def _limited(semaphore: asyncio.Semaphore | None, call: Awaitable[T]) -> T:
        if semaphore is None:
            return await call
        async with semaphore:
            return await call

    @staticmethod
    async def _settle(calls: list[Awaitable[OperationResult]]) -> list[OperationResult | Exception]:
        """Await every call, returning outcomes in dispatch order."""
        if not calls:
            return []
        outcomes = await asyncio.gather(*calls, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome
        return list(outcomes)


async def sync_fixed_points(
    plan_id: str,
    items: Sequence[FixedPointFormItem],
    gateway: FixedPointGateway | None = None,
) -> SyncResult:
    """Sync a plan's fixed points, creating a FixedPointClient from settings if none is given."""
    if gateway is not None:
        return await FixedPointSyncEngine(gateway).sync(plan_id, items)

    async with FixedPointClient() as client:
        return await FixedPointSyncEngine(client).sync(plan_id, items)
