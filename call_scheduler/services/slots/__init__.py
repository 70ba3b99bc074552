# call_scheduler/services/slots/__init__.py
"""
Slots calculation module.

Time arithmetic, slot generation and the per-day availability service.
"""

from .config import BookingConfig
from .generator import AvailabilityWindow, Slot, generate_slots
from .invalidator import invalidate_booked_times, invalidate_consultants, invalidate_windows
from .availability import build_day_availability

__all__ = [
    "BookingConfig",
    "AvailabilityWindow",
    "Slot",
    "generate_slots",
    "invalidate_booked_times",
    "invalidate_consultants",
    "invalidate_windows",
    "build_day_availability",
]
