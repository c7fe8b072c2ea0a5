"""Timestamp helpers for response payloads."""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(UTC)


def isoformat_z(moment: datetime) -> str:
    """ISO 8601 with millisecond precision and a Z suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def to_iso_date(value: object) -> str | None:
    """
    Calendar date (YYYY-MM-DD, UTC) of an upstream timestamp.

    Accepts unix seconds or an ISO 8601 string.

    Args:
        value: Raw timestamp from an upstream record

    Returns:
        Date string, or None when the value is missing or unreadable
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, UTC).date().isoformat()
    if isinstance(value, str) and value:
        candidate = value.split("T")[0].split(" ")[0]
        try:
            return date.fromisoformat(candidate).isoformat()
        except ValueError:
            return None
    return None
