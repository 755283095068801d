from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import stripe

from coworking_api.models import Booking, Payment

MONDAY_MORNING = datetime(2026, 10, 19, 10, 0)


@pytest.fixture(autouse=True)
def monday():
    with patch("coworking_api.shared.clock.local_now", return_value=MONDAY_MORNING):
        yield


@pytest.fixture
def stripe_mock():
    with patch("coworking_api.domain.payments.service.stripe_service") as mock:
        mock.is_available.return_value = True
        mock.currency = "eur"
        mock.get_or_create_customer.return_value = "cus_123"
        yield mock


@pytest.fixture
def booking(db, make_space):
    space = make_space()
    booking = Booking(
        space_id=space.id,
        space_type=space.space_type,
        date="2026-10-22",
        start_time="09:00",
        end_time="11:00",
        contact_name="Alice",
        contact_email="alice@example.com",
        base_price=60,
        total_price=60,
        deposit_amount=3000,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


class TestCreateIntent:
    def test_near_booking_gets_manual_hold(self, guest_client, booking, stripe_mock, db):
        stripe_mock.create_payment_intent.return_value = MagicMock(id="pi_1", client_secret="pi_1_secret")

        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})

        assert response.status_code == 200
        body = response.json()
        assert body["intentType"] == "payment_intent"
        assert body["captureMethod"] == "manual"
        assert body["clientSecret"] == "pi_1_secret"
        assert body["amount"] == 30
        assert stripe_mock.create_payment_intent.call_args.kwargs["capture_method"] == "manual"

        db.refresh(booking)
        assert booking.stripe_payment_intent_id == "pi_1"
        assert booking.capture_method == "manual"
        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        assert payment.payment_type == "deposit_hold"

    def test_far_booking_saves_card(self, guest_client, booking, stripe_mock, db):
        booking.date = "2026-12-15"
        db.commit()
        stripe_mock.create_setup_intent.return_value = MagicMock(id="seti_1", client_secret="seti_1_secret")

        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})

        body = response.json()
        assert body["intentType"] == "setup_intent"
        assert body["captureMethod"] == "deferred"
        stripe_mock.create_payment_intent.assert_not_called()
        db.refresh(booking)
        assert booking.capture_method == "deferred"
        assert booking.stripe_setup_intent_id == "seti_1"

    def test_open_intent_is_reused(self, guest_client, booking, stripe_mock):
        stripe_mock.create_payment_intent.return_value = MagicMock(id="pi_1", client_secret="pi_1_secret")
        stripe_mock.retrieve_payment_intent.return_value = MagicMock(id="pi_1", client_secret="pi_1_secret")

        first = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})
        second = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})

        assert first.json()["paymentId"] == second.json()["paymentId"]
        stripe_mock.create_payment_intent.assert_called_once()

    def test_other_users_booking(self, guest_client, booking, client_user, stripe_mock, db):
        booking.user_id = client_user.id
        db.commit()
        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})
        assert response.status_code == 403

    def test_cancelled_booking(self, guest_client, booking, stripe_mock, db):
        booking.status = "cancelled"
        db.commit()
        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})
        assert response.status_code == 400

    def test_stripe_not_configured(self, guest_client, booking, stripe_mock):
        stripe_mock.is_available.return_value = False
        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})
        assert response.status_code == 503

    def test_stripe_error(self, guest_client, booking, stripe_mock):
        stripe_mock.create_payment_intent.side_effect = stripe.StripeError("card declined")
        response = guest_client.post("/payments/create-intent", json={"bookingId": booking.id})
        assert response.status_code == 500


class TestRefund:
    @pytest.fixture
    def payment(self, db, booking):
        payment = Payment(
            booking_id=booking.id,
            stripe_payment_intent_id="pi_9",
            amount=3000,
            status="succeeded",
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    def test_partial_refund(self, admin_client, payment, stripe_mock):
        stripe_mock.create_refund.return_value = MagicMock(id="re_1")

        response = admin_client.post(f"/payments/{payment.id}/refund", json={"amount": 10, "reason": "goodwill"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "partially_refunded"
        assert body["stripeRefundId"] == "re_1"
        assert body["details"]["refund"]["amount"] == 1000
        stripe_mock.create_refund.assert_called_once_with("pi_9", 1000)

    def test_full_refund_updates_booking(self, admin_client, payment, booking, stripe_mock, db):
        stripe_mock.create_refund.return_value = MagicMock(id="re_2")

        response = admin_client.post(f"/payments/{payment.id}/refund", json={})

        assert response.json()["status"] == "refunded"
        db.refresh(booking)
        assert booking.payment_status == "refunded"

    def test_amount_above_payment(self, admin_client, payment, stripe_mock):
        response = admin_client.post(f"/payments/{payment.id}/refund", json={"amount": 50})
        assert response.status_code == 400

    def test_pending_payment(self, admin_client, payment, stripe_mock, db):
        payment.status = "pending"
        db.commit()
        response = admin_client.post(f"/payments/{payment.id}/refund", json={})
        assert response.status_code == 400

    def test_requires_admin(self, user_client, payment):
        assert user_client.post(f"/payments/{payment.id}/refund", json={}).status_code == 403
