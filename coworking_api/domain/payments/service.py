"""Payment service - Deposit holds, deferred card setup and refunds"""

import logging
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...config import DEPOSIT_HOLD_DAYS
from ...models import Booking, Payment, User
from ...shared import clock
from ...shared.validators import parse_date
from ..booking.pricing import compute_deposit_cents
from ..booking.repository import BookingRepository
from .repository import PaymentRepository
from .stripe_service import stripe_service

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for Stripe payment flows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    def _require_stripe(self):
        if not stripe_service.is_available():
            raise HTTPException(status_code=503, detail="Payment service not configured")

    def _deposit_hold_days(self) -> int:
        settings = BookingRepository.get_settings(self.db)
        return (settings.deposit_hold_days if settings else None) or DEPOSIT_HOLD_DAYS

    def _intent_response(self, payment: Payment, intent, intent_type: str, capture_method: str) -> dict:
        return {
            "clientSecret": intent.client_secret,
            "intentId": intent.id,
            "intentType": intent_type,
            "captureMethod": capture_method,
            "amount": payment.amount / 100,
            "currency": payment.currency,
            "paymentId": payment.id,
        }

    def _reuse_open_payment(self, booking: Booking) -> Optional[dict]:
        payment = self.repo.get_open_payment_for_booking(self.db, booking.id)
        if not payment:
            return None
        if payment.stripe_payment_intent_id:
            intent = stripe_service.retrieve_payment_intent(payment.stripe_payment_intent_id)
            logger.info(f"♻️ Reusing PaymentIntent {intent.id} for booking {booking.id}")
            return self._intent_response(payment, intent, "payment_intent", "manual")
        if payment.stripe_setup_intent_id:
            intent = stripe_service.retrieve_setup_intent(payment.stripe_setup_intent_id)
            logger.info(f"♻️ Reusing SetupIntent {intent.id} for booking {booking.id}")
            return self._intent_response(payment, intent, "setup_intent", "deferred")
        return None

    def create_intent(self, booking_id: int, user: Optional[User]) -> dict:
        """
        Start the deposit flow for a booking.

        Bookings further away than the hold window only save the card
        (SetupIntent); the worker places the hold later. Closer bookings get
        a manual-capture PaymentIntent right away.
        """
        booking = BookingRepository.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.user_id and not (user and (user.id == booking.user_id or is_admin(user))):
            raise HTTPException(status_code=403, detail="Not allowed to pay for this booking")
        if booking.status in ("cancelled", "completed", "rejected"):
            raise HTTPException(status_code=400, detail=f"Cannot pay for a {booking.status} booking")
        if booking.payment_status in ("paid", "captured"):
            raise HTTPException(status_code=400, detail="Booking is already paid")

        self._require_stripe()

        try:
            reused = self._reuse_open_payment(booking)
            if reused:
                return reused

            deposit = booking.deposit_amount or compute_deposit_cents(
                booking.total_price, booking.space.deposit_policy if booking.space else None
            )
            if deposit <= 0:
                raise HTTPException(status_code=400, detail="Nothing to pay for this booking")

            email = booking.contact_email or (booking.user.email if booking.user else None)
            name = booking.contact_name or (booking.user.full_name if booking.user else None)
            customer_id = booking.stripe_customer_id or stripe_service.get_or_create_customer(
                email, name, metadata={"booking_id": str(booking.id)}
            )
            metadata = {"booking_id": str(booking.id), "public_id": booking.public_id}
            days_until = (parse_date(booking.date) - clock.local_today()).days

            if days_until > self._deposit_hold_days():
                intent = stripe_service.create_setup_intent(customer_id, metadata=metadata)
                booking.capture_method = "deferred"
                booking.stripe_setup_intent_id = intent.id
                booking.stripe_customer_id = customer_id
                booking.deposit_amount = deposit
                payment = self.repo.create_payment(
                    self.db,
                    booking_id=booking.id,
                    stripe_setup_intent_id=intent.id,
                    amount=deposit,
                    currency=stripe_service.currency,
                    status="pending",
                    payment_type="card_setup",
                )
                logger.info(f"💳 Deferred deposit for booking {booking.id}: card setup {intent.id}")
                return self._intent_response(payment, intent, "setup_intent", "deferred")

            intent = stripe_service.create_payment_intent(
                deposit,
                customer_id=customer_id,
                metadata=metadata,
                capture_method="manual",
                description=f"Empreinte bancaire - réservation {booking.public_id}",
            )
            booking.capture_method = "manual"
            booking.stripe_payment_intent_id = intent.id
            booking.stripe_customer_id = customer_id
            booking.deposit_amount = deposit
            payment = self.repo.create_payment(
                self.db,
                booking_id=booking.id,
                stripe_payment_intent_id=intent.id,
                amount=deposit,
                currency=stripe_service.currency,
                status="pending",
                payment_type="deposit_hold",
            )
            logger.info(f"💳 Deposit hold for booking {booking.id}: {intent.id} ({deposit} cents)")
            return self._intent_response(payment, intent, "payment_intent", "manual")

        except stripe.StripeError as e:
            logger.error(f"❌ Stripe error creating intent for booking {booking.id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to create payment") from e

    def refund_payment(self, payment_id: int, amount: Optional[float], reason: Optional[str], user: User) -> Payment:
        """Refund a captured payment, in full or in part"""
        payment = self.repo.get_payment_by_id(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        if not payment.stripe_payment_intent_id:
            raise HTTPException(status_code=400, detail="Payment has no charge to refund")
        if payment.status not in ("succeeded", "partially_refunded"):
            raise HTTPException(status_code=400, detail=f"Cannot refund a payment in status {payment.status}")

        amount_cents = round(amount * 100) if amount is not None else payment.amount
        if amount_cents > payment.amount:
            raise HTTPException(status_code=400, detail="Refund amount exceeds payment amount")

        self._require_stripe()
        try:
            refund = stripe_service.create_refund(payment.stripe_payment_intent_id, amount_cents)
        except stripe.StripeError as e:
            logger.error(f"❌ Refund failed for payment {payment.id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Refund failed") from e

        is_full = amount_cents == payment.amount
        payment.status = "refunded" if is_full else "partially_refunded"
        payment.stripe_refund_id = refund.id
        details = dict(payment.details or {})
        details["refund"] = {
            "amount": amount_cents,
            "reason": reason,
            "refundedBy": user.email,
            "refundedAt": clock.local_now().isoformat(),
        }
        payment.details = details
        if payment.booking:
            payment.booking.payment_status = payment.status

        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💸 Payment {payment.id} {payment.status} ({amount_cents} cents) by {user.email}")
        return payment
