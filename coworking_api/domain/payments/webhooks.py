"""
Stripe Webhook Handler
Keeps payments and bookings in sync with Stripe PaymentIntent/SetupIntent events
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...config import STRIPE_WEBHOOK_SECRET
from ...database import get_db
from ...email_service import send_booking_confirmation_email
from ...models import Booking
from ...shared import clock
from ...webhook_security import verify_stripe_webhook
from ..booking.repository import BookingRepository
from .repository import PaymentRepository
from .stripe_service import stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["webhooks"])


@router.post("/webhook")
async def handle_stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Handle Stripe webhook events

    Events handled:
    - payment_intent.amount_capturable_updated - Card hold placed
    - setup_intent.succeeded - Card saved for a deferred hold
    - payment_intent.succeeded - Payment captured
    - payment_intent.payment_failed - Payment failed
    - charge.refunded - Charge refunded
    - payment_intent.processing / payment_intent.canceled - Status sync

    Failures inside a handler are logged and the event is still acknowledged,
    so Stripe does not retry it.
    """
    event = await verify_stripe_webhook(request, STRIPE_WEBHOOK_SECRET)

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})
    logger.info(f"📥 Received Stripe webhook: {event_type} ({event.get('id')})")

    try:
        if event_type == "payment_intent.amount_capturable_updated":
            await handle_amount_capturable_updated(data_object, db)

        elif event_type == "setup_intent.succeeded":
            await handle_setup_intent_succeeded(data_object, db)

        elif event_type == "payment_intent.succeeded":
            await handle_payment_succeeded(data_object, db)

        elif event_type == "payment_intent.payment_failed":
            await handle_payment_failed(data_object, db)

        elif event_type == "charge.refunded":
            await handle_charge_refunded(data_object, db)

        elif event_type == "payment_intent.processing":
            await handle_payment_status_sync(data_object, db, "processing")

        elif event_type == "payment_intent.canceled":
            await handle_payment_status_sync(data_object, db, "cancelled")

        else:
            logger.info(f"ℹ️ Unhandled event type: {event_type}")

    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error handling Stripe event {event_type}: {str(e)}")

    return {"received": True}


def _find_booking(db: Session, obj: dict, payment_intent_id: Optional[str] = None) -> Optional[Booking]:
    """Booking from the intent metadata, else from the stored PaymentIntent id"""
    booking_id = (obj.get("metadata") or {}).get("booking_id")
    if booking_id and str(booking_id).isdigit():
        booking = BookingRepository.get_booking_by_id(db, int(booking_id))
        if booking:
            return booking
    if payment_intent_id:
        return PaymentRepository.get_booking_by_payment_intent(db, payment_intent_id)
    return None


async def handle_amount_capturable_updated(intent: dict, db: Session):
    payment = PaymentRepository.get_by_payment_intent(db, intent["id"])
    if payment:
        payment.status = "requires_capture"

    booking = _find_booking(db, intent, intent["id"])
    if booking:
        booking.payment_status = "deposit_held"
        if not booking.stripe_payment_intent_id:
            booking.stripe_payment_intent_id = intent["id"]

    db.commit()
    logger.info(f"🔒 Hold placed for {intent['id']} ({intent.get('amount_capturable')} cents)")


async def handle_setup_intent_succeeded(setup_intent: dict, db: Session):
    booking = _find_booking(db, setup_intent) or PaymentRepository.get_booking_by_setup_intent(
        db, setup_intent["id"]
    )
    if not booking:
        logger.warning(f"⚠️ No booking found for SetupIntent {setup_intent['id']}")
        return

    booking.stripe_customer_id = setup_intent.get("customer") or booking.stripe_customer_id
    booking.stripe_payment_method_id = setup_intent.get("payment_method")
    booking.stripe_setup_intent_id = setup_intent["id"]
    booking.payment_status = "card_saved"

    payment = PaymentRepository.get_by_setup_intent(db, setup_intent["id"])
    if payment:
        payment.status = "card_saved"

    db.commit()
    logger.info(f"💾 Card saved for booking {booking.id}")


def _card_details(charge_id: str) -> dict:
    charge = stripe_service.retrieve_charge(charge_id)
    details = {"receiptUrl": getattr(charge, "receipt_url", None)}
    method_details = getattr(charge, "payment_method_details", None)
    card = getattr(method_details, "card", None) if method_details else None
    if card:
        details["cardBrand"] = getattr(card, "brand", None)
        details["cardLast4"] = getattr(card, "last4", None)
    return details


async def handle_payment_succeeded(intent: dict, db: Session):
    payment = PaymentRepository.get_by_payment_intent(db, intent["id"])
    charge_id = intent.get("latest_charge")

    if payment:
        payment.status = "succeeded"
        payment.completed_at = clock.local_now()
        payment.amount = intent.get("amount_received") or payment.amount
        if charge_id:
            payment.stripe_charge_id = charge_id
            if stripe_service.is_available():
                details = dict(payment.details or {})
                details.update(_card_details(charge_id))
                payment.details = details

    booking = _find_booking(db, intent, intent["id"])
    if not booking:
        db.commit()
        logger.warning(f"⚠️ No booking found for PaymentIntent {intent['id']}")
        return

    # capture of a cancellation fee
    if booking.status == "cancelled":
        db.commit()
        logger.info(f"💶 Cancellation fee captured via {intent['id']} for booking {booking.id}")
        return

    was_confirmed = booking.status == "confirmed"
    booking.status = "confirmed"
    booking.payment_status = "paid"
    db.commit()
    logger.info(f"✅ Booking {booking.id} confirmed and paid via {intent['id']}")

    if not was_confirmed:
        try:
            await send_booking_confirmation_email(booking)
        except Exception as e:
            logger.error(f"❌ Failed to send confirmation email for booking {booking.id}: {str(e)}")


async def handle_payment_failed(intent: dict, db: Session):
    error = intent.get("last_payment_error") or {}
    reason = error.get("message") or "Payment failed"
    now = clock.local_now()

    payment = PaymentRepository.get_by_payment_intent(db, intent["id"])
    if payment:
        payment.status = "failed"
        payment.failure_reason = reason[:500]
        payment.failed_at = now

    booking = _find_booking(db, intent, intent["id"])
    if booking:
        booking.status = "cancelled"
        booking.payment_status = "failed"
        booking.cancel_reason = "Payment failed"
        booking.cancelled_at = now

    db.commit()
    logger.warning(f"⚠️ Payment failed for {intent['id']}: {reason}")


async def handle_charge_refunded(charge: dict, db: Session):
    payment_intent_id = charge.get("payment_intent")
    payment = PaymentRepository.get_by_payment_intent(db, payment_intent_id) if payment_intent_id else None
    if not payment:
        payment = PaymentRepository.get_by_charge(db, charge["id"])

    if payment:
        payment.status = "refunded"
        payment.stripe_charge_id = payment.stripe_charge_id or charge["id"]
        refunds = (charge.get("refunds") or {}).get("data") or []
        if refunds:
            payment.stripe_refund_id = refunds[0].get("id")
        details = dict(payment.details or {})
        details["amountRefunded"] = charge.get("amount_refunded")
        payment.details = details

    booking = _find_booking(db, charge, payment_intent_id)
    if not booking and payment:
        booking = payment.booking
    if booking:
        booking.status = "cancelled"
        booking.payment_status = "refunded"
        booking.cancel_reason = booking.cancel_reason or "Payment refunded"
        booking.cancelled_at = booking.cancelled_at or clock.local_now()

    db.commit()
    logger.info(f"💸 Charge {charge['id']} refunded")


async def handle_payment_status_sync(intent: dict, db: Session, status: str):
    payment = PaymentRepository.get_by_payment_intent(db, intent["id"])
    if payment:
        payment.status = status

    booking = _find_booking(db, intent, intent["id"])
    if booking:
        booking.payment_status = status

    db.commit()
    logger.info(f"🔄 PaymentIntent {intent['id']} is now {status}")
