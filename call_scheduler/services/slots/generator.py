# call_scheduler/services/slots/generator.py
"""
Slot generation for one consultant on one date.

Contains:
✓ the weekly window for the target weekday (overnight-aware)
✓ slot duration and buffer time
✓ blocking bookings of that exact date

Does NOT contain:
✗ Validation of booking times against the window (legacy rows still block)
✗ Persistence or caching (see availability.py)
"""

from dataclasses import dataclass
from datetime import time
from typing import Iterable

from .config import BookingConfig
from .timecalc import MINUTES_PER_DAY, ClockValue, format_clock, to_minutes, within_window


@dataclass(frozen=True)
class AvailabilityWindow:
    day_of_week: int  # 0 = Sunday … 6 = Saturday
    start_time: time
    end_time: time

    @property
    def is_overnight(self) -> bool:
        return to_minutes(self.end_time) <= to_minutes(self.start_time)

    def accepts(self, value: ClockValue) -> bool:
        return within_window(value, self.start_time, self.end_time)

    def to_dict(self) -> dict:
        return {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AvailabilityWindow":
        return cls(
            day_of_week=int(data["day_of_week"]),
            start_time=time.fromisoformat(data["start_time"]),
            end_time=time.fromisoformat(data["end_time"]),
        )


@dataclass(frozen=True)
class Slot:
    start: str  # "HH:MM"
    end: str
    available: bool

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "available": self.available}


def generate_slots(
    window: AvailabilityWindow | None,
    booked_times: Iterable[ClockValue],
    config: BookingConfig,
) -> list[Slot]:
    """
    Walk the window in steps of duration + buffer.

    Returns:
        Slots in window order. No window → empty list.
    """
    if window is None:
        return []

    duration = config.slot_duration_minutes
    step = config.step_minutes

    start_min = to_minutes(window.start_time)
    end_min = to_minutes(window.end_time)
    if end_min <= start_min:
        end_min += MINUTES_PER_DAY

    blocked = _blocked_intervals(booked_times, duration + config.buffer_minutes)

    slots: list[Slot] = []
    current = start_min
    while current < end_min:
        slots.append(Slot(
            start=format_clock(current),
            end=format_clock(current + duration),
            available=not _is_blocked(current, blocked),
        ))
        current += step

    return slots


# ── Helpers ──────────────────────────────────────────────────────────────


def _blocked_intervals(
    booked_times: Iterable[ClockValue],
    span: int,
) -> list[tuple[int, int]]:
    """
    Each booking blocks [time, time + duration + buffer).

    Booked times are wall-clock values of the target date, so each interval is
    also laid onto the after-midnight part of an overnight window.
    """
    intervals: list[tuple[int, int]] = []
    for booked in booked_times:
        start = to_minutes(booked)
        intervals.append((start, start + span))
        intervals.append((start + MINUTES_PER_DAY, start + MINUTES_PER_DAY + span))
    return intervals


def _is_blocked(slot_start: int, intervals: list[tuple[int, int]]) -> bool:
    return any(start <= slot_start < end for start, end in intervals)
