from datetime import date

from call_scheduler.models import Availability, Bookings, Consultants
from call_scheduler.seed import DEMO_EMAIL, next_monday, seed_demo_data


def test_next_monday():
    assert next_monday(date(2026, 10, 17)) == date(2026, 10, 19)  # Saturday
    assert next_monday(date(2026, 10, 19)) == date(2026, 10, 26)  # Monday


def test_seed_is_idempotent(db):
    first = seed_demo_data(db, today=date(2026, 10, 17))
    second = seed_demo_data(db, today=date(2026, 10, 17))

    assert first.id == second.id
    assert db.query(Consultants).filter(Consultants.email == DEMO_EMAIL).count() == 1
    assert db.query(Availability).filter(Availability.consultant_id == first.id).count() == 5
    assert sorted(b.status for b in db.query(Bookings).all()) == ["confirmed", "pending"]


def test_seeded_consultant_is_bookable(client, db):
    consultant = seed_demo_data(db)

    data = client.get("/availability", params={
        "consultant_id": consultant.public_id,
        "date": next_monday(date.today()).isoformat(),
    }).json()

    unavailable = [s["start"] for s in data["slots"] if not s["available"]]
    assert unavailable == ["09:00", "10:00"]
    assert len(data["slots"]) == 10
