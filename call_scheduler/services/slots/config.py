# call_scheduler/services/slots/config.py
"""
Booking configuration for slot generation and admission.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from ...config import Settings


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the booking engine.

    Attributes:
        slot_duration_minutes: Length of one bookable slot
        buffer_minutes: Idle gap enforced after each booking
        max_booking_days: How many days ahead a booking may be placed
        cache_ttl_seconds: TTL for cached windows and booked times
    """
    slot_duration_minutes: int = 60
    buffer_minutes: int = 0
    max_booking_days: int = 30
    cache_ttl_seconds: int = 3600

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_duration_minutes <= 0:
            raise ValueError(
                f"slot_duration_minutes must be positive, got {self.slot_duration_minutes}"
            )
        if not 0 <= self.buffer_minutes < self.slot_duration_minutes:
            raise ValueError(
                f"buffer_minutes must be in [0, {self.slot_duration_minutes}), "
                f"got {self.buffer_minutes}"
            )

    @property
    def step_minutes(self) -> int:
        """Distance between two consecutive slot starts."""
        return self.slot_duration_minutes + self.buffer_minutes

    def max_date(self, today: date) -> date:
        return today + timedelta(days=self.max_booking_days)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingConfig":
        return cls(
            slot_duration_minutes=settings.slot_duration,
            buffer_minutes=settings.buffer_time,
            max_booking_days=settings.max_booking_days,
            cache_ttl_seconds=settings.cache_ttl,
        )
