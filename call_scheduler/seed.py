"""
Demo data: one consultant with a weekday schedule and two bookings.

    python -m call_scheduler.seed

Safe to run repeatedly: the demo consultant is reused, its schedule and the
@example.com bookings are replaced.
"""

import logging
from datetime import date, time, timedelta

from sqlalchemy.orm import Session

from .config import get_settings
from .database import build_engine, build_session_factory
from .models import Availability, Base, Bookings, BookingStatus, Consultants
from .services.consultant_store import generate_public_id

logger = logging.getLogger(__name__)

DEMO_EMAIL = "team@example.com"

# 0 = Sunday … 6 = Saturday. Mon-Fri 08:00-18:00, Wednesday short day.
DEMO_SCHEDULE = {
    1: (time(8, 0), time(18, 0)),
    2: (time(8, 0), time(18, 0)),
    3: (time(9, 0), time(14, 0)),
    4: (time(8, 0), time(18, 0)),
    5: (time(8, 0), time(18, 0)),
}


def next_monday(today: date) -> date:
    return today + timedelta(days=7 - today.weekday())


def seed_demo_data(session: Session, today: date | None = None) -> Consultants:
    today = today or date.today()

    consultant = session.query(Consultants).filter(Consultants.email == DEMO_EMAIL).first()
    if consultant is None:
        consultant = Consultants(
            public_id=generate_public_id(),
            display_name="Jan Novak",
            email=DEMO_EMAIL,
            title="Business consultant",
            bio="Experienced consultant for your needs.",
            is_active=True,
        )
        session.add(consultant)
        session.flush()

    session.query(Availability).filter(Availability.consultant_id == consultant.id).delete()
    for day, (start, end) in DEMO_SCHEDULE.items():
        session.add(Availability(
            consultant_id=consultant.id,
            day_of_week=day,
            start_time=start,
            end_time=end,
        ))

    session.query(Bookings).filter(Bookings.customer_email.like("%@example.com")).delete(
        synchronize_session=False
    )
    monday = next_monday(today)
    session.add_all([
        Bookings(
            consultant_id=consultant.id,
            customer_name="Petr Svoboda",
            customer_email="petr@example.com",
            booking_date=monday,
            booking_time=time(9, 0),
            status=BookingStatus.CONFIRMED.value,
        ),
        Bookings(
            consultant_id=consultant.id,
            customer_name="Marie Dvorakova",
            customer_email="marie@example.com",
            booking_date=monday,
            booking_time=time(10, 0),
            status=BookingStatus.PENDING.value,
        ),
    ])

    session.commit()
    logger.info(f"Demo data seeded: consultant public_id={consultant.public_id}")
    return consultant


if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine = build_engine(settings.resolved_database_url)
    Base.metadata.create_all(engine)
    with build_session_factory(engine)() as session:
        seed_demo_data(session)
