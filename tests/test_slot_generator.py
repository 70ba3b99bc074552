from datetime import time

import pytest

from call_scheduler.services.slots import AvailabilityWindow, BookingConfig, generate_slots
from call_scheduler.services.slots.timecalc import MINUTES_PER_DAY, to_minutes


def window(start: str, end: str, day: int = 1) -> AvailabilityWindow:
    return AvailabilityWindow(day, time.fromisoformat(start), time.fromisoformat(end))


HOUR = BookingConfig(slot_duration_minutes=60)


def starts(slots) -> list[str]:
    return [s.start for s in slots]


def test_no_window_means_no_slots():
    assert generate_slots(None, ["10:00"], HOUR) == []


def test_scenario_a_full_day_without_bookings():
    slots = generate_slots(window("09:00", "17:00"), [], HOUR)

    assert len(slots) == 8
    assert all(s.available for s in slots)
    assert slots[0].start == "09:00" and slots[0].end == "10:00"
    assert slots[-1].start == "16:00" and slots[-1].end == "17:00"


def test_scenario_b_one_pending_booking():
    slots = generate_slots(window("09:00", "17:00"), ["10:00:00"], HOUR)

    unavailable = [s.start for s in slots if not s.available]
    assert unavailable == ["10:00"]
    assert len(slots) == 8


def test_scenario_c_overnight_window_spans_midnight():
    slots = generate_slots(window("22:00", "02:00"), [], HOUR)

    assert [(s.start, s.end) for s in slots] == [
        ("22:00", "23:00"),
        ("23:00", "00:00"),
        ("00:00", "01:00"),
        ("01:00", "02:00"),
    ]


def test_scenario_d_buffer_extends_blocked_interval():
    config = BookingConfig(slot_duration_minutes=60, buffer_minutes=15)
    slots = generate_slots(window("08:30", "17:00"), ["10:00"], config)
    by_start = {s.start: s for s in slots}

    # Steps of 75 minutes: 08:30, 09:45, 11:00, 12:15, ...
    assert starts(slots)[:4] == ["08:30", "09:45", "11:00", "12:15"]
    assert by_start["09:45"].available
    assert not by_start["11:00"].available  # inside [10:00, 11:15)
    assert by_start["12:15"].available


def test_no_slot_starts_at_or_after_window_end():
    config = BookingConfig(slot_duration_minutes=90)
    slots = generate_slots(window("09:00", "12:00"), [], config)

    assert starts(slots) == ["09:00", "10:30"]


def test_booking_after_midnight_blocks_overnight_slot():
    slots = generate_slots(window("22:00", "02:00"), ["00:00"], HOUR)
    availability = {s.start: s.available for s in slots}

    assert availability == {"22:00": True, "23:00": True, "00:00": False, "01:00": True}


def test_legacy_booking_outside_window_still_blocks():
    slots = generate_slots(window("09:00", "17:00"), ["08:30"], HOUR)

    assert not slots[0].available  # [08:30, 09:30) covers 09:00
    assert all(s.available for s in slots[1:])


def test_generation_is_idempotent():
    args = (window("22:00", "06:00"), ["23:00", "03:00"], BookingConfig(30, 10))

    assert generate_slots(*args) == generate_slots(*args)


def test_full_day_window():
    slots = generate_slots(window("00:00", "00:00"), [], HOUR)

    assert len(slots) == 24
    assert slots[-1].start == "23:00" and slots[-1].end == "00:00"


@pytest.mark.parametrize("start, end", [
    ("09:00", "17:00"),
    ("22:00", "02:00"),
    ("20:00", "08:00"),
    ("06:00", "06:00"),
    ("09:10", "16:50"),
])
@pytest.mark.parametrize("duration, buffer", [(60, 0), (30, 0), (60, 15), (90, 30)])
def test_generator_and_admission_agree_on_membership(start, end, duration, buffer):
    """Every step-aligned start is listed iff the admission check accepts it."""
    win = window(start, end)
    config = BookingConfig(slot_duration_minutes=duration, buffer_minutes=buffer)
    listed = set(starts(generate_slots(win, [], config)))

    start_min = to_minutes(start)
    for offset in range(0, MINUTES_PER_DAY, config.step_minutes):
        minute = (start_min + offset) % MINUTES_PER_DAY
        clock = f"{minute // 60:02d}:{minute % 60:02d}"
        assert (clock in listed) == win.accepts(clock), clock


def test_config_rejects_buffer_not_shorter_than_duration():
    with pytest.raises(ValueError):
        BookingConfig(slot_duration_minutes=30, buffer_minutes=30)
