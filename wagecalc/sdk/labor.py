"""Labor time and wage conversions.

Worked time is paid by the completed minute: seconds are truncated, never
rounded. Salary multiplies minutes by the per-minute wage in floating
point and truncates once at the end, so fractional per-minute pay is
never lost minute by minute.

Timestamps without an offset are wall-clock times on this machine. When
one end of a range carries an offset and the other doesn't, the naive
end is read in the local zone before subtracting.
"""

import math
from datetime import datetime
from typing import Optional, Union

Timestamp = Union[datetime, str, None]


class TimestampError(ValueError):
    """Raised when a timestamp string can't be parsed."""
    pass


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp.

    None and empty strings mean "no event" and return None.

    Raises:
        TimestampError: If value is not a datetime or a parseable string
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise TimestampError(f"Unparseable timestamp: {value!r}") from e
    raise TimestampError(f"Not a timestamp: {value!r}")


def as_aware(value: datetime) -> datetime:
    """Attach the local zone to a naive datetime; aware ones pass through."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


def compute_net_working_minutes(start: Timestamp, end: Timestamp) -> int:
    """Whole minutes worked between start and end.

    Args:
        start: Work start
        end: Work end; None when still in progress (never replaced by now)

    Returns:
        Completed minutes, 0 if either end is missing or end precedes start
    """
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    if start_dt is None or end_dt is None:
        return 0

    if (start_dt.tzinfo is None) != (end_dt.tzinfo is None):
        start_dt, end_dt = as_aware(start_dt), as_aware(end_dt)

    # Sub-second remainder truncates toward zero
    diff_seconds = int((end_dt - start_dt).total_seconds())
    if diff_seconds < 0:
        return 0

    return diff_seconds // 60


def compute_salary(minutes: float, hourly_wage: float) -> int:
    """Gross pay for worked minutes at an hourly wage, truncated to whole yen.

    Example: 61 minutes at 1,000/hr -> floor(61 * 16.666...) = 1016
    """
    if minutes <= 0 or hourly_wage <= 0:
        return 0

    return math.floor(minutes * (hourly_wage / 60))


def format_hours_from_minutes(minutes: float) -> float:
    """Minutes as hours truncated to 2 decimals, for display only (90 -> 1.5)."""
    return math.floor((minutes / 60) * 100) / 100
