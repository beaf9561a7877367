"""Fixed point synchronization.

Keeps the server-side fixed points of a plan in line with the list the user
edited on the client, through the plans API.
"""

from app.plans.fixed_points.client import FixedPointClient, FixedPointGateway
from app.plans.fixed_points.errors import FixedPointApiError
from app.plans.fixed_points.normalize import normalize_to_iso
from app.plans.fixed_points.sync import FixedPointSyncEngine, plan_sync, sync_fixed_points
from app.plans.fixed_points.types import (
    FixedPointFormItem,
    FixedPointRecord,
    OperationResult,
    SyncPlan,
    SyncResult,
)

__all__ = [
    "FixedPointApiError",
    "FixedPointClient",
    "FixedPointFormItem",
    "FixedPointGateway",
    "FixedPointRecord",
    "FixedPointSyncEngine",
    "OperationResult",
    "SyncPlan",
    "SyncResult",
    "normalize_to_iso",
    "plan_sync",
    "sync_fixed_points",
]
