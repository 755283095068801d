from datetime import datetime
from unittest.mock import patch

import pytest

from coworking_api.models import Booking, User
from coworking_api.models_accounting import B2BRevenue, DailyTurnover
from coworking_api.models_content import ContactMessage
from coworking_api.models_hr import Employee, Task, TimeEntry


class TestProfile:
    def test_get_me(self, user_client, client_user):
        response = user_client.get("/users/me")
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"
        assert response.json()["role"] == "client"

    def test_guest_rejected(self, guest_client):
        assert guest_client.get("/users/me").status_code == 401

    def test_update_me(self, user_client):
        response = user_client.patch(
            "/users/me",
            json={"fullName": "Alice Durand", "phone": "06 12 34 56 78", "companyName": "Durand & Fils", "newsletterOptIn": True},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["fullName"] == "Alice Durand"
        assert body["phone"] == "0612345678"
        assert body["companyName"] == "Durand &amp; Fils"
        assert body["newsletterOptIn"] is True

    def test_update_me_invalid_phone(self, user_client):
        assert user_client.patch("/users/me", json={"phone": "12"}).status_code == 422


class TestUserAdministration:
    def test_list_filters(self, admin_client, staff_user, client_user):
        assert len(admin_client.get("/users").json()) == 3

        staff = admin_client.get("/users", params={"role": "staff"}).json()
        assert [u["email"] for u in staff] == ["staff@coworkingcafe.fr"]

        found = admin_client.get("/users", params={"search": "alice"}).json()
        assert [u["email"] for u in found] == ["alice@example.com"]

    def test_list_admin_only(self, staff_client):
        assert staff_client.get("/users").status_code == 403

    def test_change_role(self, admin_client, db, client_user):
        response = admin_client.patch(f"/users/{client_user.id}/role", json={"role": "staff"})
        assert response.status_code == 200
        assert response.json()["role"] == "staff"
        db.refresh(client_user)
        assert client_user.role == "staff"

    def test_change_role_invalid(self, admin_client, client_user):
        assert admin_client.patch(f"/users/{client_user.id}/role", json={"role": "owner"}).status_code == 400

    def test_change_role_unknown_user(self, admin_client):
        assert admin_client.patch("/users/999/role", json={"role": "staff"}).status_code == 404


class TestDashboard:
    @pytest.fixture(autouse=True)
    def monday(self):
        with patch("coworking_api.shared.clock.local_now", return_value=datetime(2026, 10, 19, 10, 0)):
            yield

    @pytest.fixture
    def activity(self, db, make_space):
        space = make_space()
        common = {"space_id": space.id, "space_type": space.space_type, "start_time": "10:00", "end_time": "12:00"}
        db.add_all(
            [
                Booking(date="2026-10-19", status="confirmed", total_price=60, **common),
                Booking(date="2026-10-19", status="pending", total_price=40, **common),
                Booking(date="2026-10-19", status="cancelled", total_price=80, **common),
                Booking(date="2026-10-02", status="completed", total_price=100, **common),
                Booking(date="2026-11-05", status="pending", total_price=30, **common),
                Booking(date="2026-09-30", status="confirmed", total_price=500, **common),
            ]
        )

        marie = Employee(first_name="Marie", last_name="Dupont")
        paul = Employee(first_name="Paul", last_name="Bernard")
        db.add_all([marie, paul])
        db.flush()
        db.add_all(
            [
                TimeEntry(employee_id=marie.id, date="2026-10-19", clock_in="08:55", status="active"),
                TimeEntry(
                    employee_id=paul.id, date="2026-10-19", clock_in="07:00", clock_out="09:00", status="completed"
                ),
            ]
        )

        db.add_all(
            [
                ContactMessage(name="Jean", email="jean@example.com", subject="Tarifs", message="x" * 20, status="unread"),
                ContactMessage(name="Léa", email="lea@example.com", subject="Wifi", message="x" * 20, status="read"),
                Task(title="Nettoyer la machine à café", status="pending"),
                Task(title="Commander du lait", status="completed"),
                DailyTurnover(date="2026-10-05", ht=100, ttc=120, tva=20),
                DailyTurnover(date="2026-09-28", ht=1000, ttc=1200, tva=200),
                B2BRevenue(date="2026-10-12", client_name="Acme", ht=250, ttc=300, tva=50),
            ]
        )
        db.commit()
        return {"marie": marie}

    def test_overview(self, staff_client, activity):
        response = staff_client.get("/dashboard")
        assert response.status_code == 200
        body = response.json()

        assert body["date"] == "2026-10-19"
        assert body["todayBookings"] == 2
        assert body["pendingBookings"] == 2
        assert body["clockedInEmployees"] == [
            {"employeeId": activity["marie"].id, "name": "Marie Dupont", "clockIn": "08:55"}
        ]
        assert body["unreadMessages"] == 1
        assert body["pendingTasks"] == 1

    def test_month_revenue(self, staff_client, activity):
        revenue = staff_client.get("/dashboard").json()["revenueMonth"]
        assert revenue["turnovers"] == 120
        assert revenue["b2b"] == 300
        assert revenue["bookings"] == 160
        assert revenue["total"] == 420

    def test_empty(self, staff_client):
        body = staff_client.get("/dashboard").json()
        assert body["todayBookings"] == 0
        assert body["clockedInEmployees"] == []
        assert body["revenueMonth"]["total"] == 0

    def test_requires_staff(self, user_client):
        assert user_client.get("/dashboard").status_code == 403


def test_user_model_defaults(db):
    user = User(email="bob@example.com", firebase_uid="uid-bob")
    db.add(user)
    db.commit()
    db.refresh(user)
    assert user.role == "client"
