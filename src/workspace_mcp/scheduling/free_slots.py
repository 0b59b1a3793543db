"""Free time slot computation over calendar busy intervals.

``find_free_slots`` walks busy intervals in start order with a cursor that
only moves forward, so overlapping or nested meetings never produce a
negative or duplicate gap. It needs the complete busy list for the window
before it runs.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any

from pydantic import BaseModel, model_validator


class BusyInterval(BaseModel):
    """An occupied span of time."""

    start: datetime
    end: datetime

    model_config = {"frozen": True}


class FreeInterval(BaseModel):
    """A free span of time and its whole-minute length."""

    start: datetime
    end: datetime
    duration_minutes: int

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _non_negative(self) -> "FreeInterval":
        if self.end < self.start:
            raise ValueError("free interval ends before it starts")
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration_minutes,
        }


def parse_timestamp(value: str, tz: tzinfo = timezone.utc) -> datetime:
    """Parse an RFC 3339 timestamp or an all-day date.

    Date-only values resolve to midnight in ``tz``. Timestamps without an
    offset are read in ``tz`` as well.

    Raises:
        ValueError: If the value is neither form.
    """
    value = value.strip()
    if len(value) == 10:
        day = date.fromisoformat(value)
        return datetime.combine(day, time.min, tzinfo=tz)

    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def busy_interval_from_event(event: dict[str, Any], tz: tzinfo = timezone.utc) -> BusyInterval:
    """Build a BusyInterval from a Calendar API event resource.

    Accepts both ``{"dateTime": ...}`` and all-day ``{"date": ...}`` forms.
    Both ends are expressed in ``tz``.
    """
    start = event.get("start", {})
    end = event.get("end", {})
    start_value = start.get("dateTime") or start.get("date")
    end_value = end.get("dateTime") or end.get("date")
    if not start_value or not end_value:
        raise ValueError(f"Event {event.get('id')!r} has no start or end time")
    return BusyInterval(
        start=parse_timestamp(start_value, tz).astimezone(tz),
        end=parse_timestamp(end_value, tz).astimezone(tz),
    )


def _floor_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def find_free_slots(
    window_start: datetime,
    window_end: datetime,
    min_duration_minutes: int,
    busy_intervals: Iterable[BusyInterval],
) -> list[FreeInterval]:
    """Compute free intervals of at least ``min_duration_minutes``.

    Args:
        window_start: Start of the search window.
        window_end: End of the search window.
        min_duration_minutes: Minimum length of a reported slot.
        busy_intervals: Busy intervals, in any order. They are sorted by
            start time, then end time.

    Returns:
        Free intervals in chronological order. Durations are floored to
        whole minutes.

    Raises:
        ValueError: If ``min_duration_minutes`` is negative.

    Example:
        >>> nine = datetime(2025, 1, 15, 9, tzinfo=timezone.utc)
        >>> busy = [BusyInterval(start=nine + timedelta(hours=1),
        ...                      end=nine + timedelta(hours=1, minutes=15))]
        >>> [s.duration_minutes for s in find_free_slots(nine, nine + timedelta(hours=8), 30, busy)]
        [60, 405]
    """
    if min_duration_minutes < 0:
        raise ValueError("min_duration_minutes must not be negative")

    min_gap = timedelta(minutes=min_duration_minutes)
    ordered = sorted(busy_intervals, key=lambda b: (b.start, b.end))

    free: list[FreeInterval] = []
    current = window_start

    for busy in ordered:
        gap = busy.start - current
        if gap >= min_gap:
            free.append(
                FreeInterval(start=current, end=busy.start, duration_minutes=_floor_minutes(gap))
            )
        current = max(current, busy.end)

    tail = window_end - current
    if tail >= min_gap:
        free.append(FreeInterval(start=current, end=window_end, duration_minutes=_floor_minutes(tail)))

    return free
