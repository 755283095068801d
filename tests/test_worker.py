from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe

from coworking_api import worker
from coworking_api.models import Booking, BookingSettings, Payment, PromoConfig
from coworking_api.models_hr import Employee, TimeEntry


@pytest.fixture(autouse=True)
def monday_morning():
    with patch("coworking_api.shared.clock.local_now", return_value=datetime(2026, 10, 19, 10, 0)):
        yield


@pytest.fixture
def add_booking(db, make_space):
    space = make_space()

    def _add(**overrides) -> Booking:
        fields = {
            "space_id": space.id,
            "space_type": space.space_type,
            "date": "2026-10-20",
            "start_time": "14:00",
            "end_time": "16:00",
            "contact_name": "Alice",
            "contact_email": "alice@example.com",
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

    return _add


@pytest.fixture
def stripe_mock():
    with patch("coworking_api.worker.stripe_service") as mock:
        mock.is_available.return_value = True
        mock.currency = "eur"
        yield mock


class TestBookingReminders:
    @pytest.mark.asyncio
    async def test_sends_for_tomorrow(self, db, add_booking):
        due = add_booking()
        no_email = add_booking(contact_email=None)
        add_booking(status="pending")
        add_booking(date="2026-10-21")
        add_booking(reminder_sent_at=datetime(2026, 10, 18, 16, 0))

        with patch("coworking_api.worker.send_booking_reminder_email", new_callable=AsyncMock) as send:
            result = await worker.send_booking_reminders_task({})

        assert result == {"date": "2026-10-20", "sent": [due.id], "skipped": [no_email.id], "failed": []}
        send.assert_awaited_once()
        db.refresh(due)
        assert due.reminder_sent_at == datetime(2026, 10, 19, 10, 0)

    @pytest.mark.asyncio
    async def test_failure_keeps_booking_pending_reminder(self, db, add_booking):
        booking = add_booking()

        with patch(
            "coworking_api.worker.send_booking_reminder_email",
            new_callable=AsyncMock,
            side_effect=RuntimeError("smtp down"),
        ):
            result = await worker.send_booking_reminders_task({})

        assert result["failed"] == [booking.id]
        db.refresh(booking)
        assert booking.reminder_sent_at is None


class TestDeferredDepositHolds:
    def deferred(self, add_booking, **overrides):
        fields = {
            "date": "2026-10-25",
            "capture_method": "deferred",
            "stripe_customer_id": "cus_1",
            "stripe_payment_method_id": "pm_1",
            "stripe_setup_intent_id": "seti_1",
            "payment_status": "card_saved",
        }
        fields.update(overrides)
        return add_booking(**fields)

    @pytest.mark.asyncio
    async def test_creates_hold(self, db, add_booking, stripe_mock):
        booking = self.deferred(add_booking)
        stripe_mock.create_payment_intent.return_value = MagicMock(id="pi_hold", status="requires_capture")

        result = await worker.create_deposit_holds_task({})

        assert result == {"date": "2026-10-25", "created": 1, "failed": 0}
        kwargs = stripe_mock.create_payment_intent.call_args.kwargs
        assert kwargs["amount"] == 3000
        assert kwargs["payment_method_id"] == "pm_1"
        assert kwargs["off_session"] is True
        assert kwargs["capture_method"] == "manual"

        db.refresh(booking)
        assert booking.stripe_payment_intent_id == "pi_hold"
        assert booking.payment_status == "deposit_held"
        payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
        assert payment.payment_type == "deferred_deposit_hold"
        assert payment.status == "requires_capture"

    @pytest.mark.asyncio
    async def test_uses_configured_hold_days(self, db, add_booking, stripe_mock):
        db.add(BookingSettings(deposit_hold_days=3))
        db.commit()
        self.deferred(add_booking)
        self.deferred(add_booking, date="2026-10-22")
        stripe_mock.create_payment_intent.return_value = MagicMock(id="pi_hold", status="requires_capture")

        result = await worker.create_deposit_holds_task({})

        assert result["date"] == "2026-10-22"
        assert result["created"] == 1

    @pytest.mark.asyncio
    async def test_skips_bookings_already_held(self, add_booking, stripe_mock):
        self.deferred(add_booking, stripe_payment_intent_id="pi_existing")
        self.deferred(add_booking, status="cancelled")

        result = await worker.create_deposit_holds_task({})

        assert result["created"] == 0
        stripe_mock.create_payment_intent.assert_not_called()

    @pytest.mark.asyncio
    async def test_card_declined(self, db, add_booking, stripe_mock):
        booking = self.deferred(add_booking)
        stripe_mock.create_payment_intent.side_effect = stripe.StripeError("Your card was declined.")

        result = await worker.create_deposit_holds_task({})

        assert result == {"date": "2026-10-25", "created": 0, "failed": 1}
        db.refresh(booking)
        assert booking.stripe_payment_intent_id is None
        assert booking.payment_status == "card_saved"

    @pytest.mark.asyncio
    async def test_stripe_unavailable(self, add_booking, stripe_mock):
        self.deferred(add_booking)
        stripe_mock.is_available.return_value = False

        result = await worker.create_deposit_holds_task({})

        assert result["created"] == 0
        stripe_mock.create_payment_intent.assert_not_called()


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_check_attendance(self, db):
        employee = Employee(first_name="Marie", last_name="Dupont")
        db.add(employee)
        db.flush()
        db.add(TimeEntry(employee_id=employee.id, date="2026-10-18", clock_in="10:00", status="active"))
        db.commit()

        assert await worker.check_attendance_task({}) == {"flagged": 1}

    @pytest.mark.asyncio
    async def test_reset_promo_without_config(self):
        assert await worker.reset_promo_daily_stats_task({}) == {"reset": False}

    @pytest.mark.asyncio
    async def test_reset_promo_counters(self, db):
        promo = PromoConfig(
            code="BIENVENUE",
            token="t",
            valid_from=datetime(2026, 10, 1),
            valid_until=datetime(2026, 10, 31),
            views_today=12,
            copies_today=4,
        )
        db.add(promo)
        db.commit()

        assert await worker.reset_promo_daily_stats_task({}) == {"reset": True}
        db.refresh(promo)
        assert promo.views_today == 0
        assert promo.copies_today == 0
