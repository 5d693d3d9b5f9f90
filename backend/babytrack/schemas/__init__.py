"""Shared schema utilities."""

from datetime import datetime, timezone


def to_rfc3339(value: datetime) -> str:
    """Render a timestamp as an RFC3339 UTC string with a trailing Z.

    Naive values are taken to be UTC already (SQLite hands them back naive).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
