"""
Timezone utilities for Wallclock Calendar.

Events hold naive wall-clock times interpreted in their calendar's zone.
These helpers move such a wall time between zones while keeping the
underlying instant, which is what a calendar timezone change or a
cross-calendar copy needs.
"""

from datetime import datetime, tzinfo
from typing import Union

import pytz

from .errors import ValidationError


# Zone in which externally imported stores are assumed to be written.
DEFAULT_TIMEZONE = "America/New_York"

TimezoneLike = Union[str, tzinfo]


def get_timezone(timezone: TimezoneLike):
    """
    Resolve a timezone identifier to a pytz timezone object.

    Args:
        timezone: An IANA identifier such as "Europe/London", or a pytz zone.

    Returns:
        pytz timezone object.

    Raises:
        ValidationError: if the identifier is unknown.
    """
    if isinstance(timezone, tzinfo):
        return timezone
    try:
        return pytz.timezone(str(timezone).strip())
    except pytz.UnknownTimeZoneError:
        raise ValidationError(f"Unknown timezone: {timezone!r}") from None


def is_valid_timezone(timezone: TimezoneLike) -> bool:
    try:
        get_timezone(timezone)
    except ValidationError:
        return False
    return True


def timezone_name(timezone: TimezoneLike) -> str:
    """Canonical identifier for a zone ("UTC", "Europe/London", ...)."""
    return str(get_timezone(timezone))


def localize(dt: datetime, timezone: TimezoneLike) -> datetime:
    """
    Attach ``timezone`` to a naive wall-clock datetime.

    Ambiguous wall times (the repeated hour when clocks go back) resolve to
    standard time; non-existent ones (the skipped hour) are shifted forward
    by pytz's normalize.
    """
    tz = get_timezone(timezone)
    if dt.tzinfo is not None:
        return dt.astimezone(tz)
    return tz.normalize(tz.localize(dt, is_dst=False))


def convert_wall_clock(dt: datetime, from_timezone: TimezoneLike,
                       to_timezone: TimezoneLike) -> datetime:
    """
    Re-express a naive wall time from one zone as a naive wall time in another.

    Args:
        dt: Naive datetime read in ``from_timezone``.
        from_timezone: Zone the wall time is currently expressed in.
        to_timezone: Zone to express the same instant in.

    Returns:
        A naive datetime (tzinfo=None) for the same instant.
    """
    source = get_timezone(from_timezone)
    target = get_timezone(to_timezone)
    if str(source) == str(target):
        return dt
    return localize(dt, source).astimezone(target).replace(tzinfo=None)


def same_timezone(first: TimezoneLike, second: TimezoneLike) -> bool:
    return timezone_name(first) == timezone_name(second)


def to_utc_datetime(dt: datetime, timezone: TimezoneLike) -> datetime:
    """Convert a naive wall time in ``timezone`` to an aware UTC datetime."""
    return localize(dt, timezone).astimezone(pytz.UTC)
