from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @classmethod
    def blocking(cls) -> tuple["BookingStatus", ...]:
        """Statuses that occupy a time slot."""
        return (cls.PENDING, cls.CONFIRMED)
