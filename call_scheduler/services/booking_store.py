"""
Booking persistence.

The partial unique index uq_bookings_active_slot is the only arbiter of
conflicts: insert() never pre-reads the slot, it reports what the database
decided through a typed outcome.
"""

import logging
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DependencyFailure, SlotTakenError
from ..models import Bookings, BookingStatus
from .cache import RedisCache
from .slots.invalidator import booked_key, invalidate_booked_times

logger = logging.getLogger(__name__)

BOOKED_TIMES_TTL = 300
DEFAULT_PER_PAGE = 20


# ── Insert outcome ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Inserted:
    booking: Bookings


@dataclass(frozen=True)
class SlotConflict:
    pass


@dataclass(frozen=True)
class StoreFailure:
    reason: str


InsertOutcome = Inserted | SlotConflict | StoreFailure


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a duplicate-slot violation apart from other integrity errors."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig)
    return (
        "UNIQUE constraint failed" in message
        or "Duplicate entry" in message
        or "duplicate key value" in message
    )


def booking_to_dict(booking: Bookings, consultant_public_id: str | None = None) -> dict:
    return {
        "id": booking.id,
        "consultant_id": consultant_public_id or booking.consultant.public_id,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "booking_date": booking.booking_date.isoformat(),
        "booking_time": booking.booking_time.strftime("%H:%M"),
        "status": booking.status,
    }


class BookingStore:

    def __init__(self, db: Session, cache: RedisCache):
        self.db = db
        self.cache = cache

    # ── Write ────────────────────────────────────────────────────────────

    def insert(
        self,
        consultant_id: int,
        customer_name: str,
        customer_email: str,
        booking_date: date,
        booking_time: time,
        status: BookingStatus = BookingStatus.PENDING,
    ) -> InsertOutcome:
        obj = Bookings(
            consultant_id=consultant_id,
            customer_name=customer_name,
            customer_email=customer_email,
            booking_date=booking_date,
            booking_time=booking_time,
            status=status.value,
        )
        try:
            self.db.add(obj)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                return SlotConflict()
            logger.error(f"Booking insert rejected by constraint: {e.orig}")
            return StoreFailure("integrity_error")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Booking insert failed: {e}")
            return StoreFailure("db_error")

        self.db.refresh(obj)
        invalidate_booked_times(self.cache, consultant_id, [booking_date])
        return Inserted(obj)

    def update_status(self, booking_id: int, new_status: BookingStatus) -> Bookings | None:
        """
        Change the status of a booking.

        Re-activating a cancelled booking whose slot was rebooked meanwhile
        raises SlotTakenError.
        """
        obj = self.get(booking_id)
        if obj is None:
            return None

        obj.status = new_status.value
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise SlotTakenError("Another booking already holds this time slot.") from e
            raise DependencyFailure("db_error", "Failed to update booking.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyFailure("db_error", "Failed to update booking.") from e

        self.db.refresh(obj)
        invalidate_booked_times(self.cache, obj.consultant_id, [obj.booking_date])
        return obj

    def delete(self, booking_id: int) -> Bookings | None:
        obj = self.get(booking_id)
        if obj is None:
            return None

        consultant_id = obj.consultant_id
        booking_date = obj.booking_date
        try:
            self.db.delete(obj)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DependencyFailure("db_error", "Failed to delete booking.") from e

        invalidate_booked_times(self.cache, consultant_id, [booking_date])
        return obj

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, booking_id: int) -> Bookings | None:
        return self.db.get(Bookings, booking_id)

    def blocking_times(self, consultant_id: int, booking_date: date) -> list[str]:
        """
        Start times ("HH:MM:SS") of bookings that occupy a slot on this date.
        """
        return self.cache.remember(
            booked_key(consultant_id, booking_date),
            lambda: self._load_blocking_times(consultant_id, booking_date),
            BOOKED_TIMES_TTL,
        )

    def _load_blocking_times(self, consultant_id: int, booking_date: date) -> list[str]:
        blocking = [s.value for s in BookingStatus.blocking()]
        rows = (
            self.db.query(Bookings.booking_time)
            .filter(
                Bookings.consultant_id == consultant_id,
                Bookings.booking_date == booking_date,
                Bookings.status.in_(blocking),
            )
            .order_by(Bookings.booking_time)
            .all()
        )
        return [row.booking_time.isoformat() for row in rows]

    def list(
        self,
        status: BookingStatus | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        consultant_id: int | None = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> list[Bookings]:
        query = self._filtered(status, date_from, date_to, consultant_id)
        return (
            query
            .order_by(Bookings.booking_date.desc(), Bookings.booking_time.desc())
            .offset((max(page, 1) - 1) * per_page)
            .limit(per_page)
            .all()
        )

    def count(
        self,
        status: BookingStatus | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        consultant_id: int | None = None,
    ) -> int:
        return self._filtered(status, date_from, date_to, consultant_id).count()

    def count_by_status(self) -> dict[str, int]:
        counts = {s.value: 0 for s in BookingStatus}
        rows = (
            self.db.query(Bookings.status, func.count(Bookings.id))
            .group_by(Bookings.status)
            .all()
        )
        for status, total in rows:
            counts[status] = total
        return counts

    def _filtered(
        self,
        status: BookingStatus | None,
        date_from: date | None,
        date_to: date | None,
        consultant_id: int | None,
    ):
        query = self.db.query(Bookings)
        if status is not None:
            query = query.filter(Bookings.status == status.value)
        if date_from is not None:
            query = query.filter(Bookings.booking_date >= date_from)
        if date_to is not None:
            query = query.filter(Bookings.booking_date <= date_to)
        if consultant_id is not None:
            query = query.filter(Bookings.consultant_id == consultant_id)
        return query
