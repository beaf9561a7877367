"""Fixed point data model.

This module defines the data structures for:
- Client-held form items (the desired state passed into a sync)
- Server-held records (the authoritative state returned by the API)
- Per-call operation results and the aggregated sync result
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FixedPointFormItem(BaseModel):
    """A fixed point as edited by the user, before it is synced.

    Items are immutable values; callers build a fresh list for every sync.

    Attributes:
        id: Server-assigned ID, or None when the item has not been persisted yet
        location: Where the commitment takes place
        event_at: Start date/time as entered (normalized before sending)
        event_duration: Duration in minutes, if known
        description: Optional free-text description
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    location: str
    event_at: str
    event_duration: int | None = None
    description: str | None = None

    @property
    def is_persisted(self) -> bool:
        """Whether the item references an existing server record."""
        return bool(self.id)


class FixedPointRecord(BaseModel):
    """A fixed point as stored by the server.

    Attributes:
        id: Server-assigned, immutable ID
        plan_id: ID of the plan the fixed point belongs to
        location: Where the commitment takes place
        event_at: Canonical ISO-8601 start date/time
        event_duration: Duration in minutes
        description: Optional free-text description
        created_at: Creation timestamp, when the server returns one
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    plan_id: str
    location: str
    event_at: str
    event_duration: int | None = None
    description: str | None = None
    created_at: datetime | None = None


class FixedPointPayload(BaseModel):
    """Request body for create and update calls."""

    location: str
    event_at: str
    event_duration: int | None = None
    description: str | None = None


class ApiErrorDetails(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    field_errors: dict[str, list[str]] = Field(default_factory=dict, alias="fieldErrors")


class ApiErrorBody(BaseModel):
    """Error body returned by the plans API: {error, details?: {fieldErrors}}."""

    model_config = ConfigDict(extra="ignore")

    error: str | None = None
    details: ApiErrorDetails | None = None


class OperationResult(BaseModel):
    """Outcome of a single create/update/delete call.

    Failures are returned, not raised, so the sync engine can aggregate them.
    """

    ok: bool
    message: str | None = None
    status_code: int | None = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    record: dict[str, Any] | None = None

    @classmethod
    def succeeded(cls, record: dict[str, Any] | None = None) -> "OperationResult":
        return cls(ok=True, record=record)

    @classmethod
    def failed(
        cls,
        message: str,
        status_code: int | None = None,
        field_errors: dict[str, list[str]] | None = None,
    ) -> "OperationResult":
        return cls(ok=False, message=message, status_code=status_code, field_errors=field_errors or {})


class SyncPlan(BaseModel):
    """Diff between the desired items and the IDs known to exist server-side."""

    model_config = ConfigDict(frozen=True)

    to_update: tuple[FixedPointFormItem, ...] = ()
    to_create: tuple[FixedPointFormItem, ...] = ()
    to_delete: tuple[str, ...] = ()


class SyncResult(BaseModel):
    """Aggregated result of a sync.

    A failed result does not mean nothing was saved: mutations that succeeded
    stay persisted.
    """

    success: bool
    errors: list[str] = Field(default_factory=list)
