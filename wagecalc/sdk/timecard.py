"""Timecard event aggregation.

Turns raw stamps (clock_in, break_start, break_end, clock_out) into paid
minutes per day and per period, and guards new stamps against duplicates
and impossible transitions.

Day policy:
- Events are bucketed by calendar date. Stamps with an offset are read in
  the given timezone, or in this machine's local zone when none is given.
  Stamps without an offset are taken as recorded wall-clock times.
- Each clock_in -> clock_out pair is a work span. Completed breaks inside
  a completed span are subtracted from it.
- A span still open at the end of the day (no clock_out yet) and a break
  without its break_end contribute nothing.
- Stored rows with no timestamp are skipped.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from .labor import (
    as_aware,
    compute_net_working_minutes,
    format_hours_from_minutes,
    parse_timestamp,
    TimestampError,
)

logger = logging.getLogger(__name__)


STATUS_UNKNOWN = "unknown"

# Stamps closer than this to the previous one are treated as double taps
MIN_STAMP_INTERVAL_SECONDS = 2


class EventType(str, Enum):
    CLOCK_IN = "clock_in"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    CLOCK_OUT = "clock_out"


# Status (latest event type) -> stamps allowed next
ALLOWED_NEXT = {
    STATUS_UNKNOWN: {EventType.CLOCK_IN},
    EventType.CLOCK_IN.value: {EventType.BREAK_START, EventType.CLOCK_OUT},
    EventType.BREAK_START.value: {EventType.BREAK_END},
    EventType.BREAK_END.value: {EventType.BREAK_START, EventType.CLOCK_OUT},
    EventType.CLOCK_OUT.value: {EventType.CLOCK_IN},
}


class StampRejectedError(Exception):
    """Raised when a new stamp would corrupt the event sequence."""
    pass


@dataclass(frozen=True)
class TimecardEvent:
    """A single timecard stamp."""

    event_type: EventType
    timestamp: datetime

    @classmethod
    def from_dict(cls, data: dict) -> "TimecardEvent":
        """Build from a stored log row ({"event_type": ..., "timestamp": ...}).

        Raises:
            ValueError: Unknown event_type
            TimestampError: Missing or unparseable timestamp
        """
        event_type = EventType(data.get("event_type"))
        timestamp = parse_timestamp(data.get("timestamp"))
        if timestamp is None:
            raise TimestampError(f"{event_type.value} event has no timestamp")
        return cls(event_type=event_type, timestamp=timestamp)


def event_from_row(row: dict) -> Optional[TimecardEvent]:
    """Like TimecardEvent.from_dict, but a row with no timestamp gives None.

    Raises:
        ValueError: Unknown event_type
        TimestampError: Unparseable timestamp
    """
    if parse_timestamp(row.get("timestamp")) is None:
        logger.debug(f"Skipping {row.get('event_type')} row with no timestamp")
        return None
    return TimecardEvent.from_dict(row)


def parse_events(rows: Iterable[Union[TimecardEvent, dict]]) -> List[TimecardEvent]:
    """Events from stored rows (or already-built events), dropping rows with no timestamp."""
    events = []
    for row in rows:
        event = row if isinstance(row, TimecardEvent) else event_from_row(row)
        if event is not None:
            events.append(event)
    return events


@dataclass
class DailyWork:
    """Worked time for one calendar day."""

    work_date: Optional[date]
    gross_minutes: int
    break_minutes: int
    open_span: bool = False  # clocked in without a clock_out yet

    @property
    def net_minutes(self) -> int:
        return max(0, self.gross_minutes - self.break_minutes)

    @property
    def hours(self) -> float:
        return format_hours_from_minutes(self.net_minutes)


@dataclass
class PeriodSummary:
    """Worked time over a pay period."""

    days: List[DailyWork] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(d.net_minutes for d in self.days)

    @property
    def total_hours(self) -> float:
        return format_hours_from_minutes(self.total_minutes)

    @property
    def days_worked(self) -> int:
        return sum(1 for d in self.days if d.net_minutes > 0)


def _zone(tz: Union[str, ZoneInfo, None]) -> Optional[ZoneInfo]:
    if tz is None or isinstance(tz, ZoneInfo):
        return tz
    return ZoneInfo(tz)


def _sorted(events: Iterable[TimecardEvent]) -> List[TimecardEvent]:
    return sorted(events, key=lambda e: as_aware(e.timestamp))


def group_events_by_day(
    events: Iterable[TimecardEvent],
    tz: Union[str, ZoneInfo, None] = None,
) -> Dict[date, List[TimecardEvent]]:
    """Bucket events by calendar date, each bucket in timestamp order.

    Args:
        events: Stamps in any order
        tz: Zone used to read aware timestamps' dates (default: local zone);
            naive ones are taken as-is

    Returns:
        Dict of date -> events, in date order
    """
    zone = _zone(tz)
    buckets: Dict[date, List[TimecardEvent]] = defaultdict(list)
    for event in events:
        ts = event.timestamp
        if ts.tzinfo is not None:
            ts = ts.astimezone(zone)
        buckets[ts.date()].append(event)

    return {day: _sorted(buckets[day]) for day in sorted(buckets)}


def compute_daily_work(events: Iterable[TimecardEvent], work_date: Optional[date] = None) -> DailyWork:
    """Gross, break and net minutes for one day's events."""
    gross = 0
    breaks = 0
    span_start: Optional[datetime] = None
    span_breaks = 0
    break_start: Optional[datetime] = None

    for event in _sorted(events):
        kind = event.event_type
        if kind == EventType.CLOCK_IN:
            if span_start is None:
                span_start = event.timestamp
                span_breaks = 0
                break_start = None
        elif kind == EventType.CLOCK_OUT:
            if span_start is not None:
                gross += compute_net_working_minutes(span_start, event.timestamp)
                breaks += span_breaks
                span_start = None
                break_start = None
        elif kind == EventType.BREAK_START:
            if span_start is not None and break_start is None:
                break_start = event.timestamp
        elif kind == EventType.BREAK_END:
            if break_start is not None:
                span_breaks += compute_net_working_minutes(break_start, event.timestamp)
                break_start = None

    if span_start is not None:
        logger.debug(f"{work_date}: span from {span_start} has no clock_out, not counted")

    return DailyWork(
        work_date=work_date,
        gross_minutes=gross,
        break_minutes=breaks,
        open_span=span_start is not None,
    )


def summarize_period(
    events: Iterable[TimecardEvent],
    tz: Union[str, ZoneInfo, None] = None,
) -> PeriodSummary:
    """Per-day worked time and period totals for a staff member's events."""
    by_day = group_events_by_day(events, tz)
    return PeriodSummary(days=[compute_daily_work(evts, day) for day, evts in by_day.items()])


def current_status(events: Iterable[TimecardEvent]) -> str:
    """Latest event type ("clock_in", ...), or "unknown" if there are none."""
    ordered = _sorted(events)
    if not ordered:
        return STATUS_UNKNOWN
    return ordered[-1].event_type.value


def validate_stamp(events: Iterable[TimecardEvent], event_type: Union[EventType, str], at: datetime) -> TimecardEvent:
    """Check a new stamp against the existing events and return it.

    Rejects repeating the latest event type, stamping within
    MIN_STAMP_INTERVAL_SECONDS of the latest event, and transitions not in
    ALLOWED_NEXT.

    Raises:
        StampRejectedError: If the stamp should not be recorded
    """
    new_type = EventType(event_type)
    ordered = _sorted(events)
    status = ordered[-1].event_type.value if ordered else STATUS_UNKNOWN

    if ordered:
        latest = ordered[-1]
        if latest.event_type == new_type:
            raise StampRejectedError(f"Already stamped {new_type.value}")
        elapsed = (as_aware(at) - as_aware(latest.timestamp)).total_seconds()
        if elapsed < MIN_STAMP_INTERVAL_SECONDS:
            raise StampRejectedError(
                f"{new_type.value} is {elapsed:.1f}s after the previous stamp"
            )

    if new_type not in ALLOWED_NEXT[status]:
        allowed = ", ".join(sorted(t.value for t in ALLOWED_NEXT[status]))
        raise StampRejectedError(f"Cannot stamp {new_type.value} while {status} (allowed: {allowed})")

    return TimecardEvent(event_type=new_type, timestamp=at)
