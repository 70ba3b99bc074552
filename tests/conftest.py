from datetime import date, time, timedelta

import fakeredis
import pytest
from fastapi.testclient import TestClient

from call_scheduler.audit import AuditLogger
from call_scheduler.config import Settings
from call_scheduler.main import create_app
from call_scheduler.models import Base
from call_scheduler.services.admission import BookingAdmission
from call_scheduler.services.availability_store import AvailabilityStore
from call_scheduler.services.booking_store import BookingStore
from call_scheduler.services.consultant_store import ConsultantStore
from call_scheduler.services.events import EventEmitter
from call_scheduler.services.slots import AvailabilityWindow, BookingConfig

ADMIN_TOKEN = "admin-test-token"


def next_date_with_weekday(weekday: int, today: date | None = None) -> date:
    """First date after today whose day_of_week (0 = Sunday) matches."""
    today = today or date.today()
    candidate = today + timedelta(days=1)
    while candidate.isoweekday() % 7 != weekday:
        candidate += timedelta(days=1)
    return candidate


def full_week(start: time, end: time) -> list[AvailabilityWindow]:
    return [AvailabilityWindow(day, start, end) for day in range(7)]


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        values = {
            "database_url": f"sqlite:///{tmp_path / 'test.db'}",
            "events_consumer_enabled": False,
            "admin_token": ADMIN_TOKEN,
            "booking_secret": None,
            "rate_limit_read": 1000,
            "rate_limit_write": 1000,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def make_app(make_settings, redis):
    def _make(**overrides):
        app = create_app(make_settings(**overrides), redis_client=redis)
        Base.metadata.create_all(app.state.engine)
        return app
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache(app):
    return app.state.cache


@pytest.fixture
def booking_config(app) -> BookingConfig:
    return app.state.booking_config


@pytest.fixture
def consultants(db, cache):
    return ConsultantStore(db, cache)


@pytest.fixture
def availability(db, cache):
    return AvailabilityStore(db, cache)


@pytest.fixture
def bookings(db, cache):
    return BookingStore(db, cache)


@pytest.fixture
def consultant(consultants, availability):
    """Active consultant available 09:00-17:00 every day."""
    obj = consultants.create("Ada Lovelace", email="ada@example.com", title="Analyst")
    availability.replace(obj.id, full_week(time(9, 0), time(17, 0)))
    return obj


@pytest.fixture
def admission(app, consultants, availability, bookings):
    return BookingAdmission(
        consultants=consultants,
        availability=availability,
        bookings=bookings,
        events=EventEmitter(app.state.redis),
        audit=AuditLogger(app.state.settings),
        config=app.state.booking_config,
    )


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}
