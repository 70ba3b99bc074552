# call_scheduler/services/slots/timecalc.py
"""
Wall-clock arithmetic shared by the slot generator and the admission check.

All values are minutes since midnight. A window whose end is not after its
start wraps past midnight; equal start and end means a full day.
"""

from datetime import date, time
from typing import NamedTuple

MINUTES_PER_DAY = 24 * 60

ClockValue = str | time | int


class Duration(NamedTuple):
    minutes: int
    is_overnight: bool


def to_minutes(value: ClockValue) -> int:
    """Convert "HH:MM", "HH:MM:SS", time or minutes into minutes since midnight."""
    if isinstance(value, int):
        return value
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid clock value: {value!r}")
    return int(parts[0]) * 60 + int(parts[1])


def format_clock(minutes: int) -> str:
    """Render minutes as "HH:MM", wrapping at midnight."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_overnight(start: ClockValue, end: ClockValue) -> bool:
    return to_minutes(end) <= to_minutes(start)


def duration(start: ClockValue, end: ClockValue) -> Duration:
    """
    Length of the interval start → end.

    end <= start wraps past midnight, so start == end is a full 1440 minutes.
    """
    start_min = to_minutes(start)
    end_min = to_minutes(end)
    if end_min > start_min:
        return Duration(end_min - start_min, False)
    return Duration(end_min + MINUTES_PER_DAY - start_min, True)


def format_duration(minutes: int, overnight: bool = False) -> str:
    """
    510 → "8h 30m", 480 → "8h", with " (overnight)" for wrapping intervals.
    """
    hours, rest = divmod(minutes, 60)
    text = f"{hours}h" + (f" {rest}m" if rest > 0 else "")
    return f"{text} (overnight)" if overnight else text


def describe_window(start: ClockValue, end: ClockValue) -> str:
    minutes, overnight = duration(start, end)
    return format_duration(minutes, overnight)


def within_window(value: ClockValue, start: ClockValue, end: ClockValue) -> bool:
    """
    Whether a start time falls inside a weekly window.

    Overnight windows accept the tail of the evening and the head of the
    morning: time >= start or time < end.
    """
    t = to_minutes(value)
    start_min = to_minutes(start)
    end_min = to_minutes(end)
    if end_min <= start_min:
        return t >= start_min or t < end_min
    return start_min <= t < end_min


def day_of_week(dt: date) -> int:
    """0 = Sunday … 6 = Saturday."""
    return dt.isoweekday() % 7
