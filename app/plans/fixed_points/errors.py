"""Error types and error-body decoding for the fixed points API."""

import json

import httpx
from pydantic import ValidationError

from app.plans.fixed_points.types import ApiErrorBody


class FixedPointApiError(Exception):
    """Raised when reading fixed points from the API fails.

    Mutating calls never raise this; they return an OperationResult instead.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        field_errors: dict[str, list[str]] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.field_errors = field_errors or {}
        super().__init__(self.message)


def parse_error_body(response: httpx.Response) -> ApiErrorBody | None:
    """Decode an error response body, returning None when it is not a valid error body.

    Never raises: a malformed body must not mask the original failure.
    """
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        return ApiErrorBody.model_validate(data)
    except ValidationError:
        return None


def format_error_message(body: ApiErrorBody | None, default_message: str, status_code: int) -> str:
    """Build a user-facing message from a decoded error body.

    Field errors are appended as " (field: msg1, msg2; other: msg)".
    """
    if body is None:
        return f"{default_message} (HTTP {status_code})"

    message = body.error or default_message
    field_errors = body.details.field_errors if body.details else {}
    if field_errors:
        field_messages = "; ".join(f"{field}: {', '.join(messages)}" for field, messages in field_errors.items())
        message += f" ({field_messages})"
    return message


def field_errors_of(body: ApiErrorBody | None) -> dict[str, list[str]]:
    if body is None or body.details is None:
        return {}
    return dict(body.details.field_errors)
