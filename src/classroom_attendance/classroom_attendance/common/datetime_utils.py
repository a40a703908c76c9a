from __future__ import annotations

from datetime import date, datetime, time
from typing import Protocol


def parse_clock_time(value: str) -> time:
    """Parse HH:MM or HH:MM:SS into a time of day."""
    v = (value or "").strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time string: {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def weekday_sunday_first(day: date) -> int:
    """0=Sunday ... 6=Saturday, the numbering timetable slots are stored with."""
    return (day.weekday() + 1) % 7


def elapsed_minutes(since: datetime, now: datetime) -> float:
    return (now - since).total_seconds() / 60.0


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        raise NotImplementedError


class SystemClock:
    """Server local clock; "today" is the server's calendar date."""

    def now(self) -> datetime:
        return now_local()

    def today(self) -> date:
        return now_local().date()
