"""Calendar helpers shared by the scoring services.

All timestamps are treated as wall-clock times in one reference timezone.
Upstream callers normalise timezones before events reach the engine; an
offset carried by an ISO string is dropped, not converted.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Protocol, Sequence, TypeVar


DayKey = date

_T = TypeVar("_T")


class Scheduled(Protocol):
    @property
    def start(self) -> datetime: ...


_S = TypeVar("_S", bound=Scheduled)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime; return None when unusable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    return parsed


def parse_day(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string (or date/datetime) into a day key."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


def day_key(timestamp: datetime) -> DayKey:
    """Calendar day an event belongs to; events are never split at midnight."""
    return timestamp.date()


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def hours_between(start: datetime, end: datetime) -> float:
    return minutes_between(start, end) / 60.0


def sort_by_start(events: Iterable[_S]) -> list[_S]:
    return sorted(events, key=lambda event: event.start)


def group_by_day(events: Iterable[_S]) -> dict[DayKey, list[_S]]:
    """Bucket events by the day of their start, keys in chronological order."""
    buckets: dict[DayKey, list[_S]] = defaultdict(list)
    for event in events:
        buckets[day_key(event.start)].append(event)
    return {key: buckets[key] for key in sorted(buckets)}


def has_overlap(
    start_a: datetime,
    end_a: datetime,
    start_b: datetime,
    end_b: datetime,
    buffer_minutes: float = 0.0,
) -> bool:
    buffer = timedelta(minutes=buffer_minutes)
    return (start_a - buffer) < end_b and (end_a + buffer) > start_b


def generate_date_range(start: DayKey, end: DayKey) -> list[DayKey]:
    """Inclusive list of days from ``start`` to ``end``."""
    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def current_week_range(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 of the week containing ``now``."""
    reference = now or datetime.now()
    monday = reference.date() - timedelta(days=reference.weekday())
    start = datetime.combine(monday, time.min)
    end = datetime.combine(monday + timedelta(days=6), time.max)
    return start, end


def parse_clock(value: Any, default: time) -> time:
    """Parse an ``HH:MM`` wall-clock string, falling back to ``default``."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return default
    try:
        hours, minutes = (int(part) for part in value.strip().split(":")[:2])
        return time(hour=hours, minute=minutes)
    except ValueError:
        return default


def at_clock(day: DayKey, clock: time) -> datetime:
    return datetime.combine(day, clock)


def format_clock(timestamp: datetime) -> str:
    return timestamp.strftime("%H:%M")


def format_range(start: datetime, end: datetime) -> str:
    return f"{format_clock(start)}-{format_clock(end)}"


def consecutive_pairs(items: Sequence[_T]) -> Iterable[tuple[_T, _T]]:
    return zip(items, items[1:])
