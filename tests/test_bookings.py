from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe

from coworking_api.models import Booking, Payment, PromoConfig, User

MONDAY_MORNING = datetime(2026, 10, 19, 10, 0)


@pytest.fixture
def space(make_space):
    return make_space()


@pytest.fixture
def make_booking(db):
    def _make(space, **overrides) -> Booking:
        fields = {
            "space_id": space.id,
            "space_type": space.space_type,
            "date": "2026-11-02",
            "start_time": "10:00",
            "end_time": "12:00",
            "reservation_type": "hourly",
            "number_of_people": 2,
            "contact_name": "Alice",
            "contact_email": "alice@example.com",
            "base_price": 60,
            "total_price": 60,
            "deposit_amount": 3000,
            "status": "confirmed",
        }
        fields.update(overrides)
        booking = Booking(**fields)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def no_emails():
    with patch(
        "coworking_api.domain.booking.service.send_booking_received_email", new_callable=AsyncMock
    ) as received, patch(
        "coworking_api.domain.booking.service.send_booking_confirmation_email", new_callable=AsyncMock
    ) as confirmed, patch(
        "coworking_api.domain.booking.service.send_booking_cancellation_email", new_callable=AsyncMock
    ) as cancelled:
        yield {"received": received, "confirmed": confirmed, "cancelled": cancelled}


def quote_payload(space, **overrides):
    payload = {
        "spaceId": space.id,
        "date": "2026-11-02",
        "startTime": "09:00",
        "endTime": "11:00",
        "numberOfPeople": 4,
    }
    payload.update(overrides)
    return payload


class TestQuote:
    def test_available_slot(self, guest_client, space):
        response = guest_client.post("/booking/calculate", json=quote_payload(space))
        assert response.status_code == 200
        body = response.json()
        assert body["available"] is True
        assert body["durationHours"] == 2
        assert body["totalPrice"] == 60
        assert body["promoApplied"] is False

    def test_overlapping_slot_conflicts(self, guest_client, space, make_booking):
        make_booking(space, start_time="10:00", end_time="12:00")
        response = guest_client.post("/booking/calculate", json=quote_payload(space))
        assert response.status_code == 409

    def test_adjacent_slot_is_free(self, guest_client, space, make_booking):
        make_booking(space, start_time="11:00", end_time="12:00")
        response = guest_client.post("/booking/calculate", json=quote_payload(space))
        assert response.status_code == 200

    def test_cancelled_booking_frees_slot(self, guest_client, space, make_booking):
        make_booking(space, status="cancelled")
        response = guest_client.post("/booking/calculate", json=quote_payload(space))
        assert response.status_code == 200

    def test_whole_day_booking_blocks_hours(self, guest_client, space, make_booking):
        make_booking(space, reservation_type="daily", start_time=None, end_time=None)
        response = guest_client.post("/booking/calculate", json=quote_payload(space))
        assert response.status_code == 409

    def test_capacity_exceeded(self, guest_client, space):
        response = guest_client.post("/booking/calculate", json=quote_payload(space, numberOfPeople=20))
        assert response.status_code == 400

    def test_end_before_start(self, guest_client, space):
        response = guest_client.post("/booking/calculate", json=quote_payload(space, startTime="12:00"))
        assert response.status_code == 400

    def test_unknown_space(self, guest_client):
        response = guest_client.post(
            "/booking/calculate",
            json={"spaceId": 999, "date": "2026-11-02", "startTime": "09:00", "endTime": "10:00", "numberOfPeople": 1},
        )
        assert response.status_code == 404

    def test_malformed_time(self, guest_client, space):
        response = guest_client.post("/booking/calculate", json=quote_payload(space, startTime="9h"))
        assert response.status_code == 422


class TestPricePreview:
    def preview(self, client, **overrides):
        payload = {
            "spaceType": "meeting-room",
            "reservationType": "hourly",
            "startTime": "2026-11-02T09:00:00",
            "endTime": "2026-11-02T11:00:00",
            "numberOfPeople": 4,
        }
        payload.update(overrides)
        return client.post("/calculate-price", json=payload)

    def test_hourly(self, guest_client, space):
        response = self.preview(guest_client)
        assert response.status_code == 200
        body = response.json()
        assert body["totalPrice"] == 60
        assert body["duration"] == 2
        assert body["durationUnit"] == "hours"

    def test_daily_upper_tier(self, guest_client, space):
        body = self.preview(guest_client, reservationType="daily", numberOfPeople=8).json()
        assert body["totalPrice"] == 300
        assert body["duration"] == 1
        assert body["durationUnit"] == "days"

    def test_outside_capacity(self, guest_client, space):
        assert self.preview(guest_client, numberOfPeople=13).status_code == 400

    def test_unknown_reservation_type(self, guest_client, space):
        assert self.preview(guest_client, reservationType="yearly").status_code == 400

    def test_unknown_space_type(self, guest_client, space):
        assert self.preview(guest_client, spaceType="rooftop").status_code == 404


class TestCreateBooking:
    def test_guest_needs_contact(self, guest_client, space, no_emails):
        response = guest_client.post("/bookings", json=quote_payload(space))
        assert response.status_code == 400

    def test_guest_booking(self, guest_client, space, no_emails):
        payload = quote_payload(space, contactName="Bob", contactEmail="bob@example.com")
        response = guest_client.post("/bookings", json=payload)
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["paymentStatus"] == "unpaid"
        assert body["totalPrice"] == 60
        # 50% deposit policy
        assert body["depositAmount"] == 3000
        assert body["publicId"]
        no_emails["received"].assert_awaited_once()

    def test_signed_in_user_defaults_contact(self, user_client, client_user, space, no_emails):
        response = user_client.post("/bookings", json=quote_payload(space))
        assert response.status_code == 201
        assert response.json()["contactEmail"] == client_user.email

        listing = user_client.get("/bookings")
        assert listing.status_code == 200
        assert len(listing.json()) == 1

    def test_email_failure_keeps_booking(self, guest_client, space, no_emails):
        no_emails["received"].side_effect = RuntimeError("smtp down")
        payload = quote_payload(space, contactName="Bob", contactEmail="bob@example.com")
        response = guest_client.post("/bookings", json=payload)
        assert response.status_code == 201

    def test_promo_code_discount(self, guest_client, space, db, no_emails):
        now = datetime.now()
        promo = PromoConfig(
            code="WELCOME10",
            token="t",
            discount_type="percentage",
            discount_value=10,
            valid_from=now - timedelta(days=1),
            valid_until=now + timedelta(days=30),
            is_active=True,
            history=[],
            scan_stats={},
        )
        db.add(promo)
        db.commit()

        payload = quote_payload(space, contactName="Bob", contactEmail="bob@example.com", promoCode="welcome10")
        response = guest_client.post("/bookings", json=payload)
        assert response.status_code == 201
        body = response.json()
        assert body["discount"] == 6
        assert body["totalPrice"] == 54
        assert body["promoCode"] == "WELCOME10"

        db.refresh(promo)
        assert promo.current_uses == 1

    def test_inactive_promo_is_ignored(self, guest_client, space, db, no_emails):
        now = datetime.now()
        db.add(
            PromoConfig(
                code="OLD",
                token="t",
                discount_type="fixed",
                discount_value=10,
                valid_from=now - timedelta(days=1),
                valid_until=now + timedelta(days=1),
                is_active=False,
                history=[],
                scan_stats={},
            )
        )
        db.commit()
        payload = quote_payload(space, contactName="Bob", contactEmail="bob@example.com", promoCode="OLD")
        response = guest_client.post("/bookings", json=payload)
        assert response.json()["discount"] == 0

    def test_hourly_requires_times(self, guest_client, space, no_emails):
        payload = {
            "spaceId": space.id,
            "date": "2026-11-02",
            "reservationType": "hourly",
            "contactName": "Bob",
            "contactEmail": "bob@example.com",
        }
        response = guest_client.post("/bookings", json=payload)
        assert response.status_code == 400


class TestBookingAccess:
    def test_other_user_is_forbidden(self, make_client, db, space, make_booking, client_user):
        other = User(firebase_uid="uid-other", email="other@example.com", role="client")
        db.add(other)
        db.commit()
        booking = make_booking(space, user_id=client_user.id)

        response = make_client(other).get(f"/bookings/{booking.id}")
        assert response.status_code == 403

    def test_admin_sees_any_booking(self, admin_client, space, make_booking):
        booking = make_booking(space)
        response = admin_client.get(f"/bookings/{booking.id}")
        assert response.status_code == 200
        assert response.json()["spaceName"] == space.name


class TestCancellation:
    @pytest.fixture(autouse=True)
    def monday(self):
        with patch("coworking_api.shared.clock.local_now", return_value=MONDAY_MORNING):
            yield

    def test_pending_booking_cancels_free(self, admin_client, space, make_booking, no_emails):
        booking = make_booking(space, status="pending", date="2026-10-20")
        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = False
            response = admin_client.post(f"/bookings/{booking.id}/cancel", json={"reason": "Changed plans"})

        assert response.status_code == 200
        body = response.json()
        assert body["chargePercentage"] == 0
        assert body["cancellationFee"] == 0
        assert body["booking"]["status"] == "cancelled"
        assert body["booking"]["cancelReason"] == "Changed plans"

    def test_late_cancellation_captures_hold(self, admin_client, db, space, make_booking, no_emails):
        # Thursday is 3 business days ahead: 70% of 60€ is capped by the 30€ hold
        booking = make_booking(space, date="2026-10-22", stripe_payment_intent_id="pi_123")
        db.add(Payment(booking_id=booking.id, stripe_payment_intent_id="pi_123", amount=3000, status="requires_capture"))
        db.commit()

        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = True
            stripe_mock.retrieve_payment_intent.return_value = MagicMock(
                id="pi_123", amount=3000, status="requires_capture"
            )
            stripe_mock.capture_payment_intent.return_value = MagicMock(amount_received=3000)
            response = admin_client.post(f"/bookings/{booking.id}/cancel")

        assert response.status_code == 200
        body = response.json()
        assert body["chargePercentage"] == 70
        assert body["cancellationFee"] == 30
        assert body["refundAmount"] == 0
        stripe_mock.capture_payment_intent.assert_called_once_with("pi_123", 3000)

        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        db.refresh(payment)
        assert payment.status == "succeeded"
        assert body["booking"]["paymentStatus"] == "captured"

    def test_free_cancellation_releases_hold(self, admin_client, space, make_booking, no_emails):
        booking = make_booking(space, date="2026-12-15", stripe_payment_intent_id="pi_456")
        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = True
            stripe_mock.retrieve_payment_intent.return_value = MagicMock(
                id="pi_456", amount=3000, status="requires_capture"
            )
            response = admin_client.post(f"/bookings/{booking.id}/cancel")

        assert response.json()["chargePercentage"] == 0
        stripe_mock.cancel_payment_intent.assert_called_once_with("pi_456")
        assert response.json()["booking"]["paymentStatus"] == "released"

    def test_paid_booking_partially_refunded(self, admin_client, db, space, make_booking, no_emails):
        # 16 business days ahead: 30% of 60€ kept, the rest of the 30€ payment refunded
        booking = make_booking(space, date="2026-11-10", stripe_payment_intent_id="pi_paid")
        db.add(Payment(booking_id=booking.id, stripe_payment_intent_id="pi_paid", amount=3000, status="succeeded"))
        db.commit()

        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = True
            stripe_mock.retrieve_payment_intent.return_value = MagicMock(id="pi_paid", amount=3000, status="succeeded")
            stripe_mock.create_refund.return_value = MagicMock(id="re_1")
            response = admin_client.post(f"/bookings/{booking.id}/cancel")

        assert response.status_code == 200
        body = response.json()
        assert body["chargePercentage"] == 30
        assert body["cancellationFee"] == 18
        assert body["refundAmount"] == 12
        assert body["booking"]["paymentStatus"] == "partially_refunded"
        assert body["booking"]["refundAmount"] == 12
        stripe_mock.create_refund.assert_called_once_with("pi_paid", 1200, reason="requested_by_customer")

        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        db.refresh(payment)
        assert payment.status == "partially_refunded"
        assert payment.stripe_refund_id == "re_1"

    def test_booking_without_hold_retains_nothing(self, admin_client, db, space, make_booking, no_emails):
        booking = make_booking(space, date="2026-10-20")
        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = True
            response = admin_client.post(f"/bookings/{booking.id}/cancel")

        assert response.status_code == 200
        body = response.json()
        assert body["cancellationFee"] == 0
        assert body["refundAmount"] == 0
        assert body["message"].startswith("Aucun frais")
        stripe_mock.retrieve_payment_intent.assert_not_called()
        assert no_emails["cancelled"].await_args.args[1:] == (0, 0, 0)

        db.refresh(booking)
        assert booking.cancellation_fee == 0
        assert booking.refund_amount == 0

    def test_stripe_failure_aborts(self, admin_client, db, space, make_booking, no_emails):
        booking = make_booking(space, date="2026-10-22", stripe_payment_intent_id="pi_789")
        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = True
            stripe_mock.retrieve_payment_intent.side_effect = stripe.StripeError("boom")
            response = admin_client.post(f"/bookings/{booking.id}/cancel")

        assert response.status_code == 500
        db.refresh(booking)
        assert booking.status == "confirmed"

    def test_already_cancelled(self, admin_client, space, make_booking):
        booking = make_booking(space, status="cancelled")
        response = admin_client.post(f"/bookings/{booking.id}/cancel")
        assert response.status_code == 400

    def test_fee_preview(self, admin_client, space, make_booking):
        booking = make_booking(space, date="2026-10-22", stripe_payment_intent_id="pi_preview")
        with patch("coworking_api.domain.booking.service.stripe_service") as stripe_mock:
            stripe_mock.is_available.return_value = False
            response = admin_client.get(f"/bookings/{booking.id}/cancellation-fees")

        body = response.json()
        assert body["isMeetingRoom"] is True
        assert body["daysUntilBooking"] == 3
        assert body["depositAmount"] == 30


class TestAdminReservations:
    def test_requires_admin(self, user_client):
        assert user_client.get("/admin/reservations").status_code == 403

    def test_filter_by_status(self, admin_client, space, make_booking):
        make_booking(space, status="pending")
        make_booking(space, status="confirmed", date="2026-11-03")
        response = admin_client.get("/admin/reservations", params={"status": "pending"})
        assert [b["status"] for b in response.json()] == ["pending"]

    def test_confirm_sends_email(self, admin_client, space, make_booking, no_emails):
        booking = make_booking(space, status="pending")
        response = admin_client.patch(f"/admin/reservations/{booking.id}", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        no_emails["confirmed"].assert_awaited_once()

    def test_invalid_status(self, admin_client, space, make_booking):
        booking = make_booking(space)
        response = admin_client.patch(f"/admin/reservations/{booking.id}", json={"status": "lost"})
        assert response.status_code == 422

    def test_export_csv(self, admin_client, space, make_booking):
        make_booking(space)
        response = admin_client.get("/admin/reservations/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("ID,Reference,Space")
        assert len(lines) == 2

    def test_delete(self, admin_client, space, make_booking):
        booking = make_booking(space)
        assert admin_client.delete(f"/admin/reservations/{booking.id}").status_code == 200
        assert admin_client.get(f"/bookings/{booking.id}").status_code == 404


class TestBookingSettings:
    def test_defaults(self, guest_client):
        body = guest_client.get("/booking-settings").json()
        assert body["depositHoldDays"] == 6
        assert body["cancellationPolicyMeetingRooms"][0] == {"daysBeforeBooking": 22, "chargePercentage": 0}

    def test_update(self, admin_client):
        response = admin_client.put(
            "/booking-settings",
            json={"depositHoldDays": 3, "cancellationPolicyOpenSpace": [{"daysBeforeBooking": 0, "chargePercentage": 20}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["depositHoldDays"] == 3
        assert body["cancellationPolicyOpenSpace"] == [{"daysBeforeBooking": 0, "chargePercentage": 20}]
