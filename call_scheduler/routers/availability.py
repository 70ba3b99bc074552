# call_scheduler/routers/availability.py
"""
Public slot listing.

GET /availability?consultant_id=&date=YYYY-MM-DD
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    get_availability_store,
    get_booking_config,
    get_booking_store,
    get_consultant_store,
)
from ..exceptions import BookingValidationError
from ..schemas.availability import AvailabilityDayResponse
from ..services.admission import parse_booking_date
from ..services.availability_store import AvailabilityStore
from ..services.booking_store import BookingStore
from ..services.consultant_store import ConsultantStore
from ..services.slots import BookingConfig, build_day_availability

router = APIRouter(tags=["availability"])


@router.get("/availability", response_model=AvailabilityDayResponse)
def get_availability(
    consultant_id: str = "",
    day: str | None = Query(None, alias="date"),
    consultants: ConsultantStore = Depends(get_consultant_store),
    availability: AvailabilityStore = Depends(get_availability_store),
    bookings: BookingStore = Depends(get_booking_store),
    config: BookingConfig = Depends(get_booking_config),
):
    """Slots of one consultant for one date (defaults to today)."""
    consultant = consultants.find_by_public_id(consultant_id) if consultant_id else None
    if consultant is None or not consultant.is_active:
        raise BookingValidationError("invalid_consultant", "Consultant is not available.")

    today = date.today()
    target_date = parse_booking_date(day or today.isoformat(), today, config, allow_past=True)

    return build_day_availability(consultant.id, target_date, availability, bookings, config)