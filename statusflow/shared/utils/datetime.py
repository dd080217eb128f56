"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes
    (SQLite hands back naive values for timezone-aware columns).

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def to_epoch_ms(dt: datetime) -> int:
    """Return milliseconds since the Unix epoch for a (naive-as-UTC or aware) datetime."""
    aware = ensure_utc(dt)
    assert aware is not None
    return int(aware.timestamp() * 1000)


def ms_before(reference: datetime, milliseconds: int) -> datetime:
    """Return reference shifted back by the given number of milliseconds."""
    return reference - timedelta(milliseconds=milliseconds)


def ms_after(reference: datetime, milliseconds: int) -> datetime:
    """Return reference shifted forward by the given number of milliseconds."""
    return reference + timedelta(milliseconds=milliseconds)
