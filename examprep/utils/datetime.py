"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

from datetime import datetime, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive values and convert aware ones to UTC.

    Naive datetimes come back from the store without tzinfo; they were
    written as UTC.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


__all__ = ["EPOCH", "ensure_utc", "start_of_day", "utc_now"]
