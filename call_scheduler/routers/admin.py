# call_scheduler/routers/admin.py
"""
Admin API: consultants, weekly availability, bookings.

Every route requires X-Admin-Token equal to CS_ADMIN_TOKEN. With no token
configured the whole admin API answers 403.
"""

import hmac
import logging
from datetime import date, time

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status

from ..dependencies import get_availability_store, get_booking_store, get_consultant_store
from ..exceptions import AdminAuthError, NotFoundError
from ..models import BookingStatus, Consultants
from ..schemas.availability import (
    WeeklyAvailabilityResponse,
    WeeklyAvailabilityUpdate,
    WindowRead,
)
from ..schemas.bookings import BookingListResponse, BookingRead, BookingStatusUpdate
from ..schemas.consultants import (
    ConsultantActiveUpdate,
    ConsultantCreate,
    ConsultantRead,
    ConsultantUpdate,
)
from ..services.availability_store import AvailabilityStore
from ..services.booking_store import BookingStore, booking_to_dict
from ..services.consultant_store import ConsultantStore
from ..services.events import BOOKING_DELETED, BOOKING_STATUS_CHANGED
from ..services.slots import AvailabilityWindow
from ..services.slots.timecalc import describe_window

logger = logging.getLogger(__name__)


def require_admin(request: Request, x_admin_token: str | None = Header(None)) -> None:
    expected = request.app.state.settings.admin_token
    if not expected or not x_admin_token:
        raise AdminAuthError()
    if not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
        raise AdminAuthError()


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _get_consultant(store: ConsultantStore, consultant_id: int) -> Consultants:
    obj = store.get(consultant_id)
    if not obj:
        raise NotFoundError("Consultant not found")
    return obj


def _window_read(window: AvailabilityWindow) -> WindowRead:
    return WindowRead(
        day_of_week=window.day_of_week,
        start_time=window.start_time.strftime("%H:%M"),
        end_time=window.end_time.strftime("%H:%M"),
        duration=describe_window(window.start_time, window.end_time),
        is_overnight=window.is_overnight,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Consultants
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/consultants", response_model=list[ConsultantRead])
def list_consultants(store: ConsultantStore = Depends(get_consultant_store)):
    return store.list_all()


@router.post("/consultants", response_model=ConsultantRead, status_code=status.HTTP_201_CREATED)
def create_consultant(
    data: ConsultantCreate,
    store: ConsultantStore = Depends(get_consultant_store),
):
    return store.create(**data.model_dump())


@router.patch("/consultants/{consultant_id}", response_model=ConsultantRead)
def update_consultant(
    consultant_id: int,
    data: ConsultantUpdate,
    store: ConsultantStore = Depends(get_consultant_store),
):
    _get_consultant(store, consultant_id)
    return store.update_profile(consultant_id, **data.model_dump(exclude_unset=True))


@router.put("/consultants/{consultant_id}/active", response_model=ConsultantRead)
def set_consultant_active(
    consultant_id: int,
    data: ConsultantActiveUpdate,
    store: ConsultantStore = Depends(get_consultant_store),
):
    _get_consultant(store, consultant_id)
    obj = store.set_active(consultant_id, data.is_active)
    logger.info(f"Consultant {consultant_id} active={data.is_active}")
    return obj


# ──────────────────────────────────────────────────────────────────────────────
# Weekly availability
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/consultants/{consultant_id}/availability", response_model=WeeklyAvailabilityResponse)
def get_weekly_availability(
    consultant_id: int,
    consultants: ConsultantStore = Depends(get_consultant_store),
    availability: AvailabilityStore = Depends(get_availability_store),
):
    consultant = _get_consultant(consultants, consultant_id)
    windows = availability.windows_for(consultant_id)
    return WeeklyAvailabilityResponse(
        consultant_id=consultant.public_id,
        windows=[_window_read(windows[day]) for day in sorted(windows)],
    )


@router.put("/consultants/{consultant_id}/availability", response_model=WeeklyAvailabilityResponse)
def replace_weekly_availability(
    consultant_id: int,
    data: WeeklyAvailabilityUpdate,
    consultants: ConsultantStore = Depends(get_consultant_store),
    availability: AvailabilityStore = Depends(get_availability_store),
):
    consultant = _get_consultant(consultants, consultant_id)
    windows = [
        AvailabilityWindow(
            day_of_week=w.day_of_week,
            start_time=time.fromisoformat(w.start_time),
            end_time=time.fromisoformat(w.end_time),
        )
        for w in data.windows
    ]
    saved = availability.replace(consultant_id, windows)
    return WeeklyAvailabilityResponse(
        consultant_id=consultant.public_id,
        windows=[_window_read(w) for w in saved],
    )


# ──────────────────────────────────────────────────────────────────────────────
# Bookings
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/bookings", response_model=BookingListResponse)
def list_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    date_from: date | None = None,
    date_to: date | None = None,
    consultant_id: int | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    store: BookingStore = Depends(get_booking_store),
):
    items = store.list(status_filter, date_from, date_to, consultant_id, page, per_page)
    return BookingListResponse(
        items=[BookingRead(**booking_to_dict(b)) for b in items],
        total=store.count(status_filter, date_from, date_to, consultant_id),
        page=page,
        per_page=per_page,
        counts=store.count_by_status(),
        status=status_filter.value if status_filter else None,
    )


@router.patch("/bookings/{booking_id}", response_model=BookingRead)
def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    request: Request,
    store: BookingStore = Depends(get_booking_store),
):
    existing = store.get(booking_id)
    if not existing:
        raise NotFoundError("Booking not found")

    old_status = existing.status
    if old_status == data.status.value:
        return BookingRead(**booking_to_dict(existing))

    obj = store.update_status(booking_id, data.status)
    body = booking_to_dict(obj)
    request.app.state.events.emit(BOOKING_STATUS_CHANGED, {
        "booking": body,
        "old_status": old_status,
    })
    logger.info(f"Booking {booking_id} status {old_status} → {data.status.value}")
    return BookingRead(**body)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: int,
    request: Request,
    store: BookingStore = Depends(get_booking_store),
):
    existing = store.get(booking_id)
    if not existing:
        raise NotFoundError("Booking not found")

    body = booking_to_dict(existing)
    store.delete(booking_id)
    request.app.state.events.emit(BOOKING_DELETED, {"booking": body})
    logger.info(f"Booking {booking_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
