from .status import BookingStatus
from .tables import Availability, Base, Bookings, Consultants, metadata

__all__ = [
    "Availability",
    "Base",
    "BookingStatus",
    "Bookings",
    "Consultants",
    "metadata",
]
