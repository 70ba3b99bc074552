# call_scheduler/services/slots/availability.py
"""
Day availability for one consultant.

Combines:
- the weekly window of the target weekday (AvailabilityStore, cached)
- blocking bookings of that exact date (BookingStore, cached)
- slot duration and buffer (BookingConfig)
"""

from datetime import date
from typing import TYPE_CHECKING

from .config import BookingConfig
from .generator import generate_slots
from .timecalc import day_of_week

if TYPE_CHECKING:
    from ..availability_store import AvailabilityStore
    from ..booking_store import BookingStore


def build_day_availability(
    consultant_id: int,
    target_date: date,
    availability: "AvailabilityStore",
    bookings: "BookingStore",
    config: BookingConfig,
) -> dict:
    """
    Calculate the slot list of a consultant for one date.

    Returns:
        Dict for AvailabilityResponse: date, day_of_week, slots.
    """
    weekday = day_of_week(target_date)
    window = availability.window_for(consultant_id, weekday)

    if window is None:
        slots = []
    else:
        booked = bookings.blocking_times(consultant_id, target_date)
        slots = generate_slots(window, booked, config)

    return {
        "date": target_date.isoformat(),
        "day_of_week": weekday,
        "slots": [slot.to_dict() for slot in slots],
    }
