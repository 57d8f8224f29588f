"""Time helpers - every day-boundary decision in the core is made in UTC"""
from datetime import date, datetime, timezone
from typing import Union

from services.errors import InvalidArgument


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Union[datetime, str]) -> datetime:
    """
    Normalise a timestamp to a tz-aware UTC datetime.

    Naive datetimes are taken to already be UTC. ISO-8601 strings are parsed.

    Raises:
        InvalidArgument: If value is not a datetime or a parseable ISO-8601 string

    Example:
        >>> ensure_utc('2024-03-01T23:30:00-02:00')
        datetime.datetime(2024, 3, 2, 1, 30, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise InvalidArgument(f"timestamp is not ISO-8601: {value!r}")
    if not isinstance(value, datetime):
        raise InvalidArgument(f"timestamp must be datetime or ISO string, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: Union[datetime, str]) -> date:
    """Calendar day of a timestamp in UTC"""
    return ensure_utc(value).date()


def days_between(earlier: Union[datetime, str], later: Union[datetime, str]) -> int:
    """Whole UTC calendar days from `earlier` to `later` (negative if later is before earlier)"""
    return (utc_day(later) - utc_day(earlier)).days
