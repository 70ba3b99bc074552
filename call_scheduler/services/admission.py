"""
Booking admission.

Single pass per request, each stage either advances or raises:

    honeypot → fields → consultant → date → time → availability → insert

Rate limiting and token verification happen before this (middleware and
router dependency). Nothing is written until every check has passed; after
the insert only the store outcome decides the response.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, time

from pydantic import EmailStr, TypeAdapter, ValidationError

from ..audit import AuditLogger
from ..exceptions import BookingValidationError, DependencyFailure, SlotTakenError
from ..models import Consultants
from .availability_store import AvailabilityStore
from .booking_store import (
    BookingStore,
    Inserted,
    SlotConflict,
    StoreFailure,
    booking_to_dict,
)
from .consultant_store import ConsultantStore
from .events import BOOKING_CREATED, EventEmitter
from .slots.config import BookingConfig

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
TIME_RE = re.compile(r"\d{2}:\d{2}", re.ASCII)
MAX_NAME_LEN = 255

HONEYPOT_RESPONSE = {"id": 0, "status": "pending"}

_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class BookingRequest:
    """Validated-at-the-boundary input; the controller never sees the HTTP request."""
    consultant_id: str
    customer_name: str
    customer_email: str
    booking_date: str
    booking_time: str
    website: str = ""
    client_ip: str | None = None
    user_agent: str | None = None


class BookingAdmission:

    def __init__(
        self,
        consultants: ConsultantStore,
        availability: AvailabilityStore,
        bookings: BookingStore,
        events: EventEmitter,
        audit: AuditLogger,
        config: BookingConfig,
    ):
        self.consultants = consultants
        self.availability = availability
        self.bookings = bookings
        self.events = events
        self.audit = audit
        self.config = config

    def admit(self, request: BookingRequest, today: date | None = None) -> tuple[dict, bool]:
        """
        Run every admission stage and insert the booking.

        Returns:
            (response body, created) where created is False for a honeypot hit

        Raises:
            BookingValidationError, SlotTakenError, DependencyFailure
        """
        today = today or date.today()

        if request.website:
            self.audit.honeypot_triggered(request.client_ip, request.user_agent)
            return dict(HONEYPOT_RESPONSE), False

        try:
            name, email = self._validate_fields(request)
            consultant = self._validate_consultant(request)
            booking_date = self._validate_date(request.booking_date, today)
            booking_time = self._validate_time(request.booking_time)
            self._validate_availability(consultant, booking_date, booking_time)
        except BookingValidationError as e:
            self.audit.booking_attempt("failed", request.client_ip, error_code=e.code)
            raise

        outcome = self.bookings.insert(
            consultant_id=consultant.id,
            customer_name=name,
            customer_email=email,
            booking_date=booking_date,
            booking_time=booking_time,
        )

        match outcome:
            case Inserted(booking=booking):
                pass
            case SlotConflict():
                self.audit.booking_attempt("failed", request.client_ip, error_code="slot_taken")
                raise SlotTakenError()
            case StoreFailure(reason=reason):
                logger.error(f"Booking insert failed for consultant {consultant.id}: {reason}")
                self.audit.booking_attempt("failed", request.client_ip, error_code="db_error")
                raise DependencyFailure("db_error", "Failed to create booking.")

        body = booking_to_dict(booking, consultant.public_id)
        self.events.emit(BOOKING_CREATED, {
            "booking": body,
            "consultant": {
                "display_name": consultant.display_name,
                "email": consultant.email,
            },
        })
        self.audit.booking_attempt(
            "success",
            request.client_ip,
            consultant_id=consultant.public_id,
            slot_date=body["booking_date"],
        )
        logger.info(f"Booking created: id={booking.id} consultant={consultant.id}")
        return body, True

    # ── Stages ───────────────────────────────────────────────────────────

    def _validate_fields(self, request: BookingRequest) -> tuple[str, str]:
        name = (request.customer_name or "").strip()
        if not name or len(name) > MAX_NAME_LEN:
            self.audit.invalid_input("customer_name", "empty_or_too_long", request.client_ip)
            raise BookingValidationError("invalid_name", "Please enter your name.")

        email = (request.customer_email or "").strip()
        try:
            email = _email_adapter.validate_python(email)
        except ValidationError:
            self.audit.invalid_input("customer_email", "invalid_format", request.client_ip)
            raise BookingValidationError("invalid_email", "Invalid email address.") from None

        return name, email

    def _validate_consultant(self, request: BookingRequest) -> Consultants:
        consultant = self.consultants.find_by_public_id(request.consultant_id or "")
        if consultant is None:
            raise BookingValidationError("invalid_consultant", "Consultant is not available.")
        if not consultant.is_active:
            self.audit.integrity_violation(
                "inactive_consultant", request.client_ip, consultant.public_id
            )
            raise BookingValidationError("invalid_consultant", "Consultant is not available.")
        return consultant

    def _validate_date(self, value: str, today: date) -> date:
        return parse_booking_date(value, today, self.config)

    @staticmethod
    def _validate_time(value: str) -> time:
        if not value or not TIME_RE.fullmatch(value):
            raise BookingValidationError("invalid_time", "Invalid time format. Use HH:MM.")
        hours, minutes = int(value[:2]), int(value[3:])
        if hours > 23 or minutes > 59:
            raise BookingValidationError(
                "invalid_time", "Invalid time. Hours must be 00-23, minutes 00-59."
            )
        return time(hours, minutes)

    def _validate_availability(
        self,
        consultant: Consultants,
        booking_date: date,
        booking_time: time,
    ) -> None:
        window = self.availability.window_on(consultant.id, booking_date)
        if window is None:
            raise BookingValidationError(
                "no_availability", "Consultant is not available on this day."
            )
        if not window.accepts(booking_time):
            raise BookingValidationError(
                "outside_hours",
                f"Requested time is outside working hours "
                f"({window.start_time:%H:%M} - {window.end_time:%H:%M}).",
            )


def parse_booking_date(
    value: str | None,
    today: date,
    config: BookingConfig,
    allow_past: bool = False,
) -> date:
    """
    Parse YYYY-MM-DD and check it against [today, today + max_booking_days].

    The availability listing passes allow_past=True: past days are shown, not
    rejected.
    """
    if not value or not DATE_RE.fullmatch(value):
        raise BookingValidationError("invalid_date", "Invalid date format. Use YYYY-MM-DD.")
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise BookingValidationError("invalid_date", "Invalid date.") from None

    if parsed < today and not allow_past:
        raise BookingValidationError("past_date", "Cannot book dates in the past.")
    if parsed > config.max_date(today):
        raise BookingValidationError(
            "date_too_far",
            f"Cannot book more than {config.max_booking_days} days in advance.",
        )
    return parsed
