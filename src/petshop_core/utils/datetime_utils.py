"""
DateTime utilities for pet-shop scheduling.

This module provides timezone-aware datetime handling, the deployment
offset convention for naive timestamps, and the half-open interval
overlap predicate used by the schedule-conflict engine.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Tuple, TypeVar, Union

DEFAULT_UTC_OFFSET = "-03:00"

_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_EXPLICIT_ZONE_PATTERN = re.compile(
    r"\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(Z|[+-]\d{2}(?::?\d{2})?)$", re.IGNORECASE
)

T = TypeVar("T")

TimestampInput = Union[str, datetime]


def get_current_utc() -> datetime:
    """Get the current UTC datetime."""
    return datetime.now(timezone.utc)


def parse_utc_offset(offset: str) -> timezone:
    """
    Parse an offset string such as ``-03:00`` or ``+0530`` into a fixed timezone.

    Raises:
        ValueError: If the offset is not in ``±HH:MM`` form or out of range
    """
    if offset in ("Z", "z"):
        return timezone.utc

    match = _OFFSET_PATTERN.match(offset.strip())
    if not match:
        raise ValueError(f"Invalid UTC offset '{offset}', expected format ±HH:MM")

    sign, hours, minutes = match.groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if delta >= timedelta(hours=24):
        raise ValueError(f"UTC offset '{offset}' is out of range")

    return timezone(-delta if sign == "-" else delta)


def has_explicit_offset(value: str) -> bool:
    """Check whether an ISO-8601 timestamp string carries a zone designator."""
    value = value.strip()
    if "T" not in value and " " not in value:
        return False
    return bool(_EXPLICIT_ZONE_PATTERN.search(value))


def ensure_aware(dt: datetime, offset: str = DEFAULT_UTC_OFFSET) -> datetime:
    """
    Attach the deployment offset to a naive datetime.

    Aware datetimes are returned untouched, so applying this twice is a no-op.
    """
    if dt.tzinfo is not None and dt.utcoffset() is not None:
        return dt
    return dt.replace(tzinfo=parse_utc_offset(offset))


def parse_timestamp(value: TimestampInput, offset: str = DEFAULT_UTC_OFFSET) -> datetime:
    """
    Parse a timestamp into an aware datetime using the naive-offset convention.

    Args:
        value: ISO-8601 string (``Z`` accepted) or datetime
        offset: Offset applied when the value carries none

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the string is empty or not ISO-8601
    """
    if isinstance(value, datetime):
        return ensure_aware(value, offset)

    text = value.strip()
    if not text:
        raise ValueError("Timestamp cannot be empty")

    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    return ensure_aware(datetime.fromisoformat(text), offset)


def normalize_timestamp(value: str, offset: str = DEFAULT_UTC_OFFSET) -> str:
    """
    Make the zone of an ISO-8601 timestamp string explicit.

    A string that already carries an offset (including ``Z``) is returned
    unchanged; a naive string gets the deployment offset appended.

    Example:
        >>> normalize_timestamp("2024-06-01T10:00")
        '2024-06-01T10:00:00-03:00'
        >>> normalize_timestamp("2024-06-01T10:00:00Z")
        '2024-06-01T10:00:00Z'
    """
    if has_explicit_offset(value):
        return value
    return parse_timestamp(value, offset).isoformat()


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """
    Check whether two half-open intervals ``[start, end)`` intersect.

    Empty intervals intersect nothing, and intervals that only share a
    boundary point do not overlap.
    """
    if not (a_start < a_end and b_start < b_end):
        return False
    return a_start < b_end and b_start < a_end


def find_overlapping(
    intervals: Iterable[Tuple[datetime, datetime, T]],
    window_start: datetime,
    window_end: datetime,
) -> List[T]:
    """
    Return the payloads of the intervals overlapping a window, ordered by start.

    Args:
        intervals: ``(start, end, payload)`` tuples
        window_start: Inclusive window start
        window_end: Exclusive window end
    """
    matches = [
        (start, payload)
        for start, end, payload in intervals
        if intervals_overlap(start, end, window_start, window_end)
    ]
    matches.sort(key=lambda item: item[0])
    return [payload for _, payload in matches]


def appointment_window(
    scheduled_at: datetime, duration_minutes: Optional[int], default_minutes: int = 60
) -> Tuple[datetime, datetime]:
    """Get the ``[start, end)`` window occupied by an appointment."""
    minutes = duration_minutes if duration_minutes and duration_minutes > 0 else default_minutes
    return scheduled_at, scheduled_at + timedelta(minutes=minutes)


def boarding_scheduled_at(check_in_date: date, offset: str = DEFAULT_UTC_OFFSET) -> datetime:
    """Boarding stays are sorted on the agenda at noon of the check-in day."""
    return datetime.combine(check_in_date, time(12, 0), parse_utc_offset(offset))


def is_within_working_hours(
    moment: time,
    work_start: Optional[time],
    work_end: Optional[time],
    lunch_start: Optional[time] = None,
    lunch_end: Optional[time] = None,
) -> bool:
    """Check a time of day against a staff working-hours template."""
    if work_start is None or work_end is None:
        return True
    if not work_start <= moment < work_end:
        return False
    if lunch_start is not None and lunch_end is not None:
        return not lunch_start <= moment < lunch_end
    return True
