"""
FastAPI dependencies wiring request sessions to the stores.

Everything long-lived (Redis client, audit logger, booking config, event
emitter) is created once in create_app and read from app.state.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .audit import AuditLogger
from .database import get_db
from .services.admission import BookingAdmission
from .services.availability_store import AvailabilityStore
from .services.booking_store import BookingStore
from .services.cache import RedisCache
from .services.consultant_store import ConsultantStore
from .services.slots.config import BookingConfig


def get_cache(request: Request) -> RedisCache:
    return request.app.state.cache


def get_booking_config(request: Request) -> BookingConfig:
    return request.app.state.booking_config


def get_audit(request: Request) -> AuditLogger:
    return request.app.state.audit


def get_consultant_store(
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
) -> ConsultantStore:
    return ConsultantStore(db, cache)


def get_availability_store(
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
    config: BookingConfig = Depends(get_booking_config),
) -> AvailabilityStore:
    return AvailabilityStore(db, cache, ttl=config.cache_ttl_seconds)


def get_booking_store(
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
) -> BookingStore:
    return BookingStore(db, cache)


def get_admission(
    request: Request,
    consultants: ConsultantStore = Depends(get_consultant_store),
    availability: AvailabilityStore = Depends(get_availability_store),
    bookings: BookingStore = Depends(get_booking_store),
) -> BookingAdmission:
    state = request.app.state
    return BookingAdmission(
        consultants=consultants,
        availability=availability,
        bookings=bookings,
        events=state.events,
        audit=state.audit,
        config=state.booking_config,
    )
