"""HTTP client for the per-plan fixed points collection.

Wraps the plans API endpoints:
- GET    /plans/{plan_id}/fixed-points
- POST   /plans/{plan_id}/fixed-points
- PATCH  /plans/{plan_id}/fixed-points/{id}
- DELETE /plans/{plan_id}/fixed-points/{id}

Every call is independent and is never retried here. The list call raises
FixedPointApiError on failure; mutating calls return an OperationResult.
"""

from typing import Any, Protocol

import httpx
from loguru import logger
from pydantic import ValidationError

from app.config.settings import settings
from app.plans.fixed_points.errors import (
    FixedPointApiError,
    field_errors_of,
    format_error_message,
    parse_error_body,
)
from app.plans.fixed_points.normalize import normalize_to_iso
from app.plans.fixed_points.types import (
    FixedPointFormItem,
    FixedPointPayload,
    FixedPointRecord,
    OperationResult,
)

FETCH_FAILED = "Failed to fetch fixed points"
CREATE_FAILED = "Failed to create fixed point"
UPDATE_FAILED = "Failed to update fixed point"
DELETE_FAILED = "Failed to delete fixed point"


class FixedPointGateway(Protocol):
    """Operations the sync engine needs from the remote collection."""

    async def list_fixed_points(self, plan_id: str) -> list[FixedPointRecord]: ...

    async def create_fixed_point(self, plan_id: str, item: FixedPointFormItem) -> OperationResult: ...

    async def update_fixed_point(self, plan_id: str, point_id: str, item: FixedPointFormItem) -> OperationResult: ...

    async def delete_fixed_point(self, plan_id: str, point_id: str) -> OperationResult: ...


def build_payload(item: FixedPointFormItem) -> dict[str, Any]:
    """Build the create/update request body. The item ID is never sent."""
    return FixedPointPayload(
        location=item.location,
        event_at=normalize_to_iso(item.event_at),
        event_duration=item.event_duration,
        description=item.description,
    ).model_dump()


class FixedPointClient:
    """Async client for one plans API deployment.

    An httpx.AsyncClient can be injected (tests use httpx.MockTransport);
    otherwise one is created from settings and owned by this instance.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        token = token if token is not None else settings.api_token
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.api_timeout_seconds,
            headers=headers,
        )

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "FixedPointClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _collection_url(self, plan_id: str) -> str:
        return f"{self.base_url}/plans/{plan_id}/fixed-points"

    def _record_url(self, plan_id: str, point_id: str) -> str:
        return f"{self._collection_url(plan_id)}/{point_id}"

    async def list_fixed_points(self, plan_id: str) -> list[FixedPointRecord]:
        """Fetch all fixed points of a plan.

        Raises:
            FixedPointApiError: On transport failure, non-success status or
                an unreadable response body
        """
        logger.debug("Fixed points: listing", plan_id=plan_id)
        try:
            response = await self._client.get(self._collection_url(plan_id))
        except httpx.RequestError as e:
            raise FixedPointApiError(f"{FETCH_FAILED}: {e}") from e

        if not response.is_success:
            body = parse_error_body(response)
            logger.warning(
                f"Fixed points: list failed with HTTP {response.status_code}",
                plan_id=plan_id,
                status_code=response.status_code,
            )
            raise FixedPointApiError(
                format_error_message(body, FETCH_FAILED, response.status_code),
                status_code=response.status_code,
                field_errors=field_errors_of(body),
            )

        try:
            data = response.json()
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [FixedPointRecord.model_validate(raw) for raw in data]
        except (ValueError, TypeError, ValidationError) as e:
            raise FixedPointApiError(f"{FETCH_FAILED}: malformed response ({e})", status_code=response.status_code) from e

    async def create_fixed_point(self, plan_id: str, item: FixedPointFormItem) -> OperationResult:
        logger.debug("Fixed points: creating", plan_id=plan_id, location=item.location)
        return await self._send("POST", self._collection_url(plan_id), CREATE_FAILED, json=build_payload(item))

    async def update_fixed_point(self, plan_id: str, point_id: str, item: FixedPointFormItem) -> OperationResult:
        logger.debug("Fixed points: updating", plan_id=plan_id, point_id=point_id)
        return await self._send("PATCH", self._record_url(plan_id, point_id), UPDATE_FAILED, json=build_payload(item))

    async def delete_fixed_point(self, plan_id: str, point_id: str) -> OperationResult:
        logger.debug("Fixed points: deleting", plan_id=plan_id, point_id=point_id)
        return await self._send("DELETE", self._record_url(plan_id, point_id), DELETE_FAILED)

    async def _send(
        self,
        method: str,
        url: str,
        default_message: str,
        json: dict[str, Any] | None = None,
    ) -> OperationResult:
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.RequestError as e:
            logger.warning("Fixed points: {method} {url} transport error: {error}", method=method, url=url, error=str(e))
            return OperationResult.failed(f"{default_message}: {e}")

        if not response.is_success:
            body = parse_error_body(response)
            logger.warning(
                "Fixed points: {method} {url} failed with HTTP {status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            return OperationResult.failed(
                format_error_message(body, default_message, response.status_code),
                status_code=response.status_code,
                field_errors=field_errors_of(body),
            )

        record = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = None
            record = data if isinstance(data, dict) else None
        return OperationResult.succeeded(record)
