# call_scheduler/schemas/bookings.py

from typing import Optional

from pydantic import BaseModel

from ..models import BookingStatus


class BookingCreate(BaseModel):
    """
    Public booking form.

    Everything is a plain string here: format and range checks live in the
    admission controller so each failure maps to its own error code.
    """
    consultant_id: str = ""
    customer_name: str = ""
    customer_email: str = ""
    booking_date: str = ""
    booking_time: str = ""
    website: str = ""  # honeypot, must stay empty


class BookingRead(BaseModel):
    id: int
    consultant_id: str
    customer_name: str
    customer_email: str
    booking_date: str
    booking_time: str
    status: str


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingListResponse(BaseModel):
    items: list[BookingRead]
    total: int
    page: int
    per_page: int
    counts: dict[str, int]
    status: Optional[str] = None
