"""Payment repository - Database operations for Stripe payment records"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.booking))
            .filter(Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def get_by_payment_intent(db: Session, payment_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_payment_intent_id == payment_intent_id).first()

    @staticmethod
    def get_by_setup_intent(db: Session, setup_intent_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_setup_intent_id == setup_intent_id).first()

    @staticmethod
    def get_by_charge(db: Session, charge_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.stripe_charge_id == charge_id).first()

    @staticmethod
    def get_open_payment_for_booking(db: Session, booking_id: int) -> Optional[Payment]:
        """Latest payment still waiting on the customer or holding funds"""
        return (
            db.query(Payment)
            .filter(
                Payment.booking_id == booking_id,
                Payment.status.in_(("pending", "requires_capture")),
            )
            .order_by(Payment.id.desc())
            .first()
        )

    @staticmethod
    def get_booking_by_payment_intent(db: Session, payment_intent_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.space), joinedload(Booking.user))
            .filter(Booking.stripe_payment_intent_id == payment_intent_id)
            .first()
        )

    @staticmethod
    def get_booking_by_setup_intent(db: Session, setup_intent_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.stripe_setup_intent_id == setup_intent_id).first()

    @staticmethod
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment
