"""Collect per-operation outcomes into one positional error list."""

from collections.abc import Sequence

from app.plans.fixed_points.types import OperationResult


def describe_failure(outcome: OperationResult | BaseException) -> str | None:
    """Return the failure message of an outcome, or None if it succeeded.

    Exceptions escaping a collaborator are reported like any other failure.
    """
    if isinstance(outcome, BaseException):
        return str(outcome) or type(outcome).__name__
    if outcome.ok:
        return None
    return outcome.message or "Unknown error"


def aggregate_errors(label: str, outcomes: Sequence[OperationResult | BaseException]) -> list[str]:
    """Format failures as "<label> <1-based position>: <message>".

    Positions follow the order of ``outcomes``, which is the dispatch order,
    not the completion order.
    """
    errors: list[str] = []
    for index, outcome in enumerate(outcomes, start=1):
        message = describe_failure(outcome)
        if message is not None:
            errors.append(f"{label} {index}: {message}")
    return errors
