import json
from datetime import date, timedelta
from unittest import mock

import pytest
from fastapi.testclient import TestClient

from call_scheduler.exceptions import DependencyFailure
from call_scheduler.services.events import EVENTS_QUEUE


def book(client, consultant, day, hour="10:00", email="grace@example.com"):
    resp = client.post("/bookings", json={
        "consultant_id": consultant.public_id,
        "customer_name": "Grace Hopper",
        "customer_email": email,
        "booking_date": day.isoformat(),
        "booking_time": hour,
    })
    assert resp.status_code == 201
    return resp.json()


def drain_events(redis) -> list[dict]:
    events = []
    while (raw := redis.lpop(EVENTS_QUEUE)) is not None:
        events.append(json.loads(raw))
    return events


class TestAuth:

    def test_missing_token(self, client):
        resp = client.get("/admin/consultants")
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"

    def test_wrong_token(self, client):
        assert client.get("/admin/consultants", headers={"X-Admin-Token": "nope"}).status_code == 403

    def test_admin_api_closed_without_configured_token(self, make_app, admin_headers):
        with TestClient(make_app(admin_token=None)) as client:
            assert client.get("/admin/consultants", headers=admin_headers).status_code == 403


class TestConsultants:

    def test_create_update_deactivate(self, client, admin_headers):
        resp = client.post("/admin/consultants", headers=admin_headers, json={
            "display_name": "Katherine Johnson",
            "email": "kj@example.com",
        })
        assert resp.status_code == 201
        created = resp.json()
        assert created["is_active"] is True
        assert len(created["public_id"]) == 8

        resp = client.patch(
            f"/admin/consultants/{created['id']}",
            headers=admin_headers,
            json={"title": "Mathematician"},
        )
        assert resp.json()["title"] == "Mathematician"
        assert resp.json()["display_name"] == "Katherine Johnson"

        assert [c["id"] for c in client.get("/consultants").json()] == [created["public_id"]]

        resp = client.put(
            f"/admin/consultants/{created['id']}/active",
            headers=admin_headers,
            json={"is_active": False},
        )
        assert resp.json()["is_active"] is False
        assert client.get("/consultants").json() == []

    def test_invalid_email(self, client, admin_headers):
        resp = client.post("/admin/consultants", headers=admin_headers, json={
            "display_name": "X",
            "email": "not-an-email",
        })
        assert resp.status_code == 400

    def test_unknown_consultant(self, client, admin_headers):
        resp = client.patch("/admin/consultants/999", headers=admin_headers, json={"title": "x"})
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"


class TestAvailability:

    def test_replace_and_read_weekly_schedule(self, client, admin_headers, consultant):
        url = f"/admin/consultants/{consultant.id}/availability"
        resp = client.put(url, headers=admin_headers, json={"windows": [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "17:30"},
            {"day_of_week": 5, "start_time": "22:00", "end_time": "02:00"},
        ]})
        assert resp.status_code == 200

        data = client.get(url, headers=admin_headers).json()
        assert data["consultant_id"] == consultant.public_id
        assert data["windows"] == [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "17:30",
             "duration": "8h 30m", "is_overnight": False},
            {"day_of_week": 5, "start_time": "22:00", "end_time": "02:00",
             "duration": "4h (overnight)", "is_overnight": True},
        ]

    @pytest.mark.parametrize("windows", [
        [{"day_of_week": 7, "start_time": "09:00", "end_time": "17:00"}],
        [{"day_of_week": 1, "start_time": "9:00", "end_time": "17:00"}],
        [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
            {"day_of_week": 1, "start_time": "13:00", "end_time": "17:00"},
        ],
    ])
    def test_rejects_bad_schedule(self, client, admin_headers, consultant, windows):
        resp = client.put(
            f"/admin/consultants/{consultant.id}/availability",
            headers=admin_headers,
            json={"windows": windows},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_input"


class TestBookings:

    def test_list_with_filters_and_counts(self, client, admin_headers, consultant):
        day = date.today() + timedelta(days=1)
        first = book(client, consultant, day, "10:00")
        book(client, consultant, day, "11:00", email="b@example.com")
        client.patch(f"/admin/bookings/{first['id']}", headers=admin_headers, json={"status": "confirmed"})

        data = client.get("/admin/bookings", headers=admin_headers).json()
        assert data["total"] == 2
        assert data["counts"] == {"pending": 1, "confirmed": 1, "cancelled": 0}

        data = client.get("/admin/bookings", headers=admin_headers, params={"status": "pending"}).json()
        assert data["status"] == "pending"
        assert [b["booking_time"] for b in data["items"]] == ["11:00"]

        data = client.get(
            "/admin/bookings",
            headers=admin_headers,
            params={"date_from": (day + timedelta(days=1)).isoformat()},
        ).json()
        assert data["total"] == 0

    def test_pagination(self, client, admin_headers, consultant):
        day = date.today() + timedelta(days=1)
        for i, hour in enumerate(["09:00", "10:00", "11:00"]):
            book(client, consultant, day, hour, email=f"c{i}@example.com")

        data = client.get("/admin/bookings", headers=admin_headers, params={"per_page": 2, "page": 2}).json()

        assert data["total"] == 3
        assert len(data["items"]) == 1

    def test_status_change_emits_event(self, client, admin_headers, consultant, redis):
        created = book(client, consultant, date.today() + timedelta(days=1))
        drain_events(redis)

        resp = client.patch(f"/admin/bookings/{created['id']}", headers=admin_headers, json={"status": "confirmed"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "confirmed"
        [event] = drain_events(redis)
        assert event["type"] == "booking.status_changed"
        assert event["old_status"] == "pending"
        assert event["booking"]["status"] == "confirmed"

    def test_same_status_is_noop(self, client, admin_headers, consultant, redis):
        created = book(client, consultant, date.today() + timedelta(days=1))
        drain_events(redis)

        resp = client.patch(f"/admin/bookings/{created['id']}", headers=admin_headers, json={"status": "pending"})

        assert resp.status_code == 200
        assert drain_events(redis) == []

    def test_unknown_status_value(self, client, admin_headers, consultant):
        created = book(client, consultant, date.today() + timedelta(days=1))
        resp = client.patch(f"/admin/bookings/{created['id']}", headers=admin_headers, json={"status": "storno"})
        assert resp.status_code == 400

    def test_reactivation_into_taken_slot_is_409(self, client, admin_headers, consultant):
        day = date.today() + timedelta(days=1)
        first = book(client, consultant, day)
        client.patch(f"/admin/bookings/{first['id']}", headers=admin_headers, json={"status": "cancelled"})
        book(client, consultant, day, email="other@example.com")

        resp = client.patch(f"/admin/bookings/{first['id']}", headers=admin_headers, json={"status": "pending"})

        assert resp.status_code == 409
        assert resp.json()["code"] == "slot_taken"

    def test_delete_frees_slot_and_emits_event(self, client, admin_headers, consultant, redis):
        day = date.today() + timedelta(days=1)
        created = book(client, consultant, day)
        drain_events(redis)

        resp = client.delete(f"/admin/bookings/{created['id']}", headers=admin_headers)

        assert resp.status_code == 204
        [event] = drain_events(redis)
        assert event["type"] == "booking.deleted"
        assert event["booking"]["id"] == created["id"]
        slots = client.get("/availability", params={
            "consultant_id": consultant.public_id,
            "date": day.isoformat(),
        }).json()["slots"]
        assert all(s["available"] for s in slots)

        assert client.delete(f"/admin/bookings/{created['id']}", headers=admin_headers).status_code == 404


class TestPublicIdCollision:

    def test_create_retries_when_public_id_was_taken_concurrently(self, consultants, consultant):
        ids = iter([consultant.public_id, "0badc0de"])

        # The existence check misses the row, as it would for a concurrent insert
        with mock.patch(
            "call_scheduler.services.consultant_store.generate_public_id",
            side_effect=lambda: next(ids),
        ), mock.patch.object(consultants, "find_by_public_id", return_value=None):
            created = consultants.create("Mary Jackson")

        assert created.public_id == "0badc0de"
        assert {c.public_id for c in consultants.list_all()} == {consultant.public_id, "0badc0de"}

    def test_create_gives_up_after_repeated_collisions(self, consultants, consultant):
        with mock.patch(
            "call_scheduler.services.consultant_store.generate_public_id",
            return_value=consultant.public_id,
        ), mock.patch.object(consultants, "find_by_public_id", return_value=None):
            with pytest.raises(DependencyFailure):
                consultants.create("Mary Jackson")

        assert [c.public_id for c in consultants.list_all()] == [consultant.public_id]
