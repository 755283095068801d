"""Booking service - Business logic for quotes, reservations and cancellations"""

import csv
import logging
from datetime import datetime
from io import StringIO
from typing import Optional

import stripe
from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...auth import is_admin
from ...cache import BOOKING_SETTINGS_CACHE_KEY, BOOKING_SETTINGS_TTL, cached, invalidate_booking_settings_cache
from ...config import DEPOSIT_HOLD_DAYS
from ...email_service import send_booking_cancellation_email, send_booking_confirmation_email, send_booking_received_email
from ...models import Booking, Space, User
from ...shared import clock
from ...shared.validators import parse_date, time_to_minutes
from ..payments.repository import PaymentRepository
from ..payments.stripe_service import stripe_service
from ..promo.service import record_promo_use, resolve_discount_promo
from .cancellation import (
    DEFAULT_MEETING_ROOM_POLICY,
    DEFAULT_OPEN_SPACE_POLICY,
    business_days_until,
    cancellation_message,
    compute_cancellation_fees,
    get_cancellation_policy,
    is_meeting_room,
    resolve_charge_percentage,
)
from .pricing import PricingError, apply_promo, calculate_hours, calculate_reservation_price, compute_deposit_cents
from .repository import BookingRepository
from .schemas import (
    AdminReservationUpdate,
    BookingCalculateRequest,
    BookingCreate,
    BookingResponse,
    BookingSettingsUpdate,
    PriceCalculationRequest,
)

logger = logging.getLogger(__name__)

WHOLE_DAY = ("00:00", "23:59")


@cached(BOOKING_SETTINGS_CACHE_KEY, BOOKING_SETTINGS_TTL)
def booking_settings_payload(db: Session) -> dict:
    settings = BookingRepository.get_settings(db)
    return {
        "cancellationPolicyOpenSpace": _policy_out(
            (settings.cancellation_policy_open_space if settings else None) or DEFAULT_OPEN_SPACE_POLICY
        ),
        "cancellationPolicyMeetingRooms": _policy_out(
            (settings.cancellation_policy_meeting_rooms if settings else None) or DEFAULT_MEETING_ROOM_POLICY
        ),
        "depositHoldDays": (settings.deposit_hold_days if settings else None) or DEPOSIT_HOLD_DAYS,
        "notificationEmail": settings.notification_email if settings else None,
    }


def _policy_out(policy: list[dict]) -> list[dict]:
    return [
        {"daysBeforeBooking": tier["days_before_booking"], "chargePercentage": tier["charge_percentage"]}
        for tier in policy
    ]


def _policy_in(tiers) -> list[dict]:
    return [{"days_before_booking": t.daysBeforeBooking, "charge_percentage": t.chargePercentage} for t in tiers]


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.payments = PaymentRepository()

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _get_bookable_space(self, space_id: int) -> Space:
        space = self.repo.get_space(self.db, space_id)
        if not space or not space.is_active:
            raise HTTPException(status_code=404, detail="Space not found")
        return space

    @staticmethod
    def _check_time_range(start_time: str, end_time: str):
        if time_to_minutes(end_time) <= time_to_minutes(start_time):
            raise HTTPException(status_code=400, detail="End time must be after start time")

    @staticmethod
    def _check_capacity(space: Space, people: int):
        if people > space.max_capacity:
            raise HTTPException(
                status_code=400,
                detail=f"Number of people exceeds space capacity ({space.max_capacity})",
            )

    def _check_availability(self, space_id: int, date: str, start_time: str, end_time: str):
        conflict = self.repo.find_conflicting_booking(self.db, space_id, date, start_time, end_time)
        if conflict:
            logger.info(f"⛔ Slot {date} {start_time}-{end_time} on space {space_id} overlaps booking {conflict.id}")
            raise HTTPException(status_code=409, detail="This time slot is already booked")

    def _price(self, space: Space, reservation_type: str, people: int, hours: float, promo_code: Optional[str]):
        try:
            quote = calculate_reservation_price(space.pricing, reservation_type, people, hours)
        except PricingError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        promo = resolve_discount_promo(self.db, promo_code)
        if promo:
            discount, total = apply_promo(quote["total_price"], promo.discount_type, promo.discount_value)
        else:
            discount, total = 0.0, quote["total_price"]
        return quote, promo, discount, total

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    @staticmethod
    def _check_owner_or_admin(booking: Booking, user: User):
        if booking.user_id != user.id and not is_admin(user):
            raise HTTPException(status_code=403, detail="Not allowed to access this booking")

    # ============================================================================
    # QUOTES
    # ============================================================================

    def calculate_quote(self, data: BookingCalculateRequest) -> dict:
        """Availability-checked hourly quote for a space slot"""
        space = self._get_bookable_space(data.spaceId)
        self._check_time_range(data.startTime, data.endTime)
        self._check_capacity(space, data.numberOfPeople)
        self._check_availability(space.id, data.date, data.startTime, data.endTime)

        hours = calculate_hours(data.startTime, data.endTime)
        quote, promo, discount, total = self._price(space, "hourly", data.numberOfPeople, hours, data.promoCode)

        return {
            "available": True,
            "spaceId": space.id,
            "spaceName": space.name,
            "date": data.date,
            "startTime": data.startTime,
            "endTime": data.endTime,
            "numberOfPeople": data.numberOfPeople,
            "durationHours": round(hours, 2),
            "basePrice": quote["base_price"],
            "extraCharge": quote["extra_charge"],
            "subtotal": quote["total_price"],
            "discount": discount,
            "totalPrice": total,
            "promoApplied": promo is not None,
            "promoCode": promo.code if promo else None,
        }

    def calculate_price_preview(self, data: PriceCalculationRequest) -> dict:
        space = self.repo.get_space_by_type(self.db, data.spaceType)
        if not space:
            raise HTTPException(status_code=404, detail="Space type not found")

        if data.numberOfPeople < space.min_capacity or data.numberOfPeople > space.max_capacity:
            raise HTTPException(
                status_code=400,
                detail=f"Number of people must be between {space.min_capacity} and {space.max_capacity}",
            )

        hours = (data.endTime - data.startTime).total_seconds() / 3600
        try:
            quote = calculate_reservation_price(space.pricing, data.reservationType, data.numberOfPeople, hours)
        except PricingError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        return {
            "spaceType": data.spaceType,
            "reservationType": data.reservationType,
            "basePrice": quote["base_price"],
            "extraCharge": quote["extra_charge"],
            "totalPrice": quote["total_price"],
            "duration": quote["duration"],
            "durationUnit": quote["duration_unit"],
            "perPerson": quote["per_person"],
        }

    # ============================================================================
    # RESERVATIONS
    # ============================================================================

    async def create_booking(self, data: BookingCreate, user: Optional[User]) -> Booking:
        """Create a pending booking with a server-side price"""
        space = self._get_bookable_space(data.spaceId)

        contact_name = data.contactName or (user.full_name if user else None)
        contact_email = data.contactEmail or (user.email if user else None)
        if not user and (not contact_name or not contact_email):
            raise HTTPException(status_code=400, detail="Contact name and email are required for guest bookings")

        if data.reservationType == "hourly":
            if not data.startTime or not data.endTime:
                raise HTTPException(status_code=400, detail="Start and end times are required for hourly bookings")
            start_time, end_time = data.startTime, data.endTime
            self._check_time_range(start_time, end_time)
            hours = calculate_hours(start_time, end_time)
        else:
            start_time, end_time = data.startTime, data.endTime
            hours = 0

        self._check_capacity(space, data.numberOfPeople)
        window = (start_time, end_time) if start_time and end_time else WHOLE_DAY
        self._check_availability(space.id, data.date, *window)

        quote, promo, discount, total = self._price(
            space, data.reservationType, data.numberOfPeople, hours, data.promoCode
        )
        if promo:
            record_promo_use(self.db, promo)

        logger.info(f"📥 Creating booking on space {space.id} for {data.date} ({data.reservationType})")
        booking = self.repo.create_booking(
            self.db,
            user_id=user.id if user else None,
            space_id=space.id,
            space_type=space.space_type,
            date=data.date,
            start_time=start_time,
            end_time=end_time,
            reservation_type=data.reservationType,
            number_of_people=data.numberOfPeople,
            contact_name=contact_name,
            contact_email=contact_email,
            contact_phone=data.contactPhone or (user.phone if user else None),
            company_name=data.companyName,
            message=data.message,
            base_price=quote["total_price"],
            discount=discount,
            total_price=total,
            promo_code=promo.code if promo else None,
            deposit_amount=compute_deposit_cents(total, space.deposit_policy),
            status="pending",
            payment_status="unpaid",
        )
        logger.info(f"✅ Booking {booking.id} created ({booking.total_price}€)")

        try:
            await send_booking_received_email(booking)
        except Exception as e:
            logger.error(f"❌ Failed to send booking received email for {booking.id}: {str(e)}")

        return booking

    def list_user_bookings(self, user: User) -> list[Booking]:
        return self.repo.get_bookings_for_user(self.db, user.id)

    def get_booking(self, booking_id: int, user: User) -> Booking:
        booking = self._get_booking(booking_id)
        self._check_owner_or_admin(booking, user)
        return booking

    # ============================================================================
    # CANCELLATION
    # ============================================================================

    def _held_amount_cents(self, booking: Booking) -> int:
        """Amount on the card hold, from Stripe when reachable. Nothing is held without a PaymentIntent."""
        if not booking.stripe_payment_intent_id:
            return 0
        if stripe_service.is_available():
            try:
                intent = stripe_service.retrieve_payment_intent(booking.stripe_payment_intent_id)
                return intent.amount
            except stripe.StripeError as e:
                logger.warning(f"⚠️ Could not retrieve {booking.stripe_payment_intent_id}: {str(e)}")
        return booking.deposit_amount or 0

    def _cancellation_terms(self, booking: Booking) -> dict:
        settings = self.repo.get_settings(self.db)
        policy = get_cancellation_policy(booking.space_type, settings)
        days = business_days_until(parse_date(booking.date), clock.local_today())
        percentage = resolve_charge_percentage(booking.status, days, policy)

        deposit_cents = self._held_amount_cents(booking)
        fee_cents, refund_cents = compute_cancellation_fees(
            round(booking.total_price * 100), deposit_cents, percentage
        )
        return {
            "days_until_booking": days,
            "charge_percentage": percentage,
            "deposit_cents": deposit_cents,
            "fee_cents": fee_cents,
            "refund_cents": refund_cents,
        }

    @staticmethod
    def _retained_percentage(terms: dict) -> int:
        # with nothing held there is nothing to retain
        return terms["charge_percentage"] if terms["deposit_cents"] else 0

    def _terms_message(self, terms: dict) -> str:
        return cancellation_message(self._retained_percentage(terms), terms["refund_cents"] / 100)

    def preview_cancellation(self, booking_id: int) -> dict:
        booking = self._get_booking(booking_id)
        if booking.status == "cancelled":
            raise HTTPException(status_code=400, detail="Booking is already cancelled")

        terms = self._cancellation_terms(booking)
        refund = terms["refund_cents"] / 100
        return {
            "bookingId": booking.id,
            "status": booking.status,
            "isMeetingRoom": is_meeting_room(booking.space_type),
            "daysUntilBooking": terms["days_until_booking"],
            "chargePercentage": terms["charge_percentage"],
            "depositAmount": terms["deposit_cents"] / 100,
            "cancellationFee": terms["fee_cents"] / 100,
            "refundAmount": refund,
            "message": self._terms_message(terms),
        }

    def _settle_payment_intent(self, booking: Booking, terms: dict):
        """Release, capture or refund the card hold according to the fee"""
        intent = stripe_service.retrieve_payment_intent(booking.stripe_payment_intent_id)
        payment = self.payments.get_by_payment_intent(self.db, intent.id)
        percentage = terms["charge_percentage"]

        if intent.status == "requires_capture":
            if percentage == 0:
                stripe_service.cancel_payment_intent(intent.id)
                booking.payment_status = "released"
                if payment:
                    payment.status = "cancelled"
            else:
                amount = None if percentage == 100 else terms["fee_cents"]
                captured = stripe_service.capture_payment_intent(intent.id, amount)
                booking.payment_status = "captured"
                if payment:
                    payment.status = "succeeded"
                    payment.amount = captured.amount_received
                    payment.completed_at = clock.local_now()

        elif intent.status == "succeeded" and terms["refund_cents"] > 0:
            refund = stripe_service.create_refund(intent.id, terms["refund_cents"], reason="requested_by_customer")
            booking.payment_status = "partially_refunded" if terms["fee_cents"] > 0 else "refunded"
            if payment:
                payment.status = booking.payment_status
                payment.stripe_refund_id = refund.id

        else:
            logger.info(f"ℹ️ PaymentIntent {intent.id} in status {intent.status}, nothing to settle")

    def _release_setup_intent(self, booking: Booking):
        try:
            setup_intent = stripe_service.retrieve_setup_intent(booking.stripe_setup_intent_id)
            if setup_intent.status == "requires_payment_method":
                stripe_service.cancel_setup_intent(setup_intent.id)
        except stripe.StripeError as e:
            logger.warning(f"⚠️ Could not cancel SetupIntent {booking.stripe_setup_intent_id}: {str(e)}")

    async def cancel_booking(self, booking_id: int, user: User, reason: Optional[str] = None) -> dict:
        booking = self._get_booking(booking_id)
        self._check_owner_or_admin(booking, user)
        if booking.status in ("cancelled", "completed"):
            raise HTTPException(status_code=400, detail=f"Cannot cancel a {booking.status} booking")

        terms = self._cancellation_terms(booking)
        logger.info(
            f"🗑️ Cancelling booking {booking.id}: {terms['charge_percentage']}% fee, "
            f"{terms['days_until_booking']} business days ahead"
        )

        if stripe_service.is_available():
            if booking.stripe_payment_intent_id:
                try:
                    self._settle_payment_intent(booking, terms)
                except stripe.StripeError as e:
                    logger.error(f"❌ Stripe settlement failed for booking {booking.id}: {str(e)}")
                    raise HTTPException(status_code=500, detail="Payment provider error during cancellation") from e
            elif booking.stripe_setup_intent_id:
                self._release_setup_intent(booking)

        booking.status = "cancelled"
        booking.cancelled_at = clock.local_now()
        booking.cancel_reason = reason
        booking.cancellation_fee = terms["fee_cents"] / 100
        booking.refund_amount = terms["refund_cents"] / 100
        self.db.commit()
        self.db.refresh(booking)

        refund = terms["refund_cents"] / 100
        try:
            await send_booking_cancellation_email(
                booking, self._retained_percentage(terms), booking.cancellation_fee, refund
            )
        except Exception as e:
            logger.error(f"❌ Failed to send cancellation email for booking {booking.id}: {str(e)}")

        return {
            "message": self._terms_message(terms),
            "chargePercentage": terms["charge_percentage"],
            "cancellationFee": booking.cancellation_fee,
            "refundAmount": refund,
            "booking": BookingResponse.from_booking(booking),
        }

    # ============================================================================
    # ADMIN
    # ============================================================================

    def search_reservations(
        self,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        space_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[Booking]:
        return self.repo.search_bookings(self.db, status, date_from, date_to, space_id, search)

    async def update_reservation(self, booking_id: int, data: AdminReservationUpdate) -> Booking:
        booking = self._get_booking(booking_id)
        previous_status = booking.status

        updates = {}
        if data.adminNotes is not None:
            updates["admin_notes"] = data.adminNotes
        if data.status is not None and data.status != previous_status:
            updates["status"] = data.status
            if data.status == "cancelled":
                updates["cancelled_at"] = clock.local_now()
                updates["cancel_reason"] = data.reason

        booking = self.repo.update_booking(self.db, booking, **updates)
        logger.info(f"✏️ Reservation {booking.id} updated ({previous_status} -> {booking.status})")

        if booking.status == "confirmed" and previous_status != "confirmed":
            try:
                await send_booking_confirmation_email(booking)
            except Exception as e:
                logger.error(f"❌ Failed to send confirmation email for booking {booking.id}: {str(e)}")

        return booking

    def delete_reservation(self, booking_id: int):
        booking = self._get_booking(booking_id)
        self.repo.delete_booking(self.db, booking)
        logger.info(f"🗑️ Reservation {booking_id} deleted")

    def export_reservations_csv(
        self,
        user: User,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        space_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> StreamingResponse:
        """Export reservations as CSV"""
        logger.info(f"📊 Reservation CSV export requested by {user.email}")
        bookings = self.search_reservations(status, date_from, date_to, space_id, search)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            [
                "ID",
                "Reference",
                "Space",
                "Date",
                "Start",
                "End",
                "Type",
                "People",
                "Contact Name",
                "Contact Email",
                "Contact Phone",
                "Company",
                "Base Price",
                "Discount",
                "Total Price",
                "Promo Code",
                "Status",
                "Payment Status",
                "Created At",
            ]
        )
        for b in bookings:
            writer.writerow(
                [
                    b.id,
                    b.public_id,
                    b.space.name if b.space else b.space_type,
                    b.date,
                    b.start_time or "",
                    b.end_time or "",
                    b.reservation_type,
                    b.number_of_people,
                    b.contact_name or "",
                    b.contact_email or "",
                    b.contact_phone or "",
                    b.company_name or "",
                    b.base_price,
                    b.discount,
                    b.total_price,
                    b.promo_code or "",
                    b.status,
                    b.payment_status,
                    b.created_at.strftime("%Y-%m-%d %H:%M:%S") if b.created_at else "",
                ]
            )

        output.seek(0)
        filename = f"reservations_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
        logger.info(f"✅ CSV export successful: {filename} ({len(bookings)} reservations)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename={filename}",
                "Cache-Control": "no-cache",
            },
        )

    # ============================================================================
    # SETTINGS
    # ============================================================================

    def get_settings(self) -> dict:
        return booking_settings_payload(self.db)

    def update_settings(self, data: BookingSettingsUpdate) -> dict:
        settings = self.repo.get_or_create_settings(self.db)
        if data.cancellationPolicyOpenSpace is not None:
            settings.cancellation_policy_open_space = _policy_in(data.cancellationPolicyOpenSpace)
        if data.cancellationPolicyMeetingRooms is not None:
            settings.cancellation_policy_meeting_rooms = _policy_in(data.cancellationPolicyMeetingRooms)
        if data.depositHoldDays is not None:
            settings.deposit_hold_days = data.depositHoldDays
        if data.notificationEmail is not None:
            settings.notification_email = data.notificationEmail
        self.db.commit()

        invalidate_booking_settings_cache()
        logger.info("⚙️ Booking settings updated")
        return booking_settings_payload(self.db)
