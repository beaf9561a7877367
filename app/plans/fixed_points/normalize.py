"""Datetime normalization for fixed point timestamps."""

from datetime import UTC

from dateutil import parser as date_parser


def normalize_to_iso(value: str) -> str:
    """Convert an ISO-8601 style datetime string to canonical ISO-8601 UTC.

    Output looks like ``2024-02-01T10:00:00.000Z``. Naive inputs are taken as UTC.
    Missing month or day default to the first (``2024-02`` is 2024-02-01); input
    without a date, such as ``10:00``, is not parseable.

    Unparsable input is returned unchanged and left for the API to reject.
    Whether malformed timestamps should instead be rejected locally is an open
    decision; a stricter client could raise here.
    """
    if not value:
        return value
    try:
        parsed = date_parser.isoparse(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        else:
            parsed = parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return value
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")
