"""Payment domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateIntentRequest(BaseModel):
    bookingId: int


class CreateIntentResponse(BaseModel):
    clientSecret: str
    intentId: str
    intentType: str  # payment_intent, setup_intent
    captureMethod: str  # manual, deferred
    amount: float
    currency: str
    paymentId: int


class RefundRequest(BaseModel):
    """Full refund when amount is omitted; amount in euros"""

    amount: Optional[float] = Field(default=None, gt=0)
    reason: Optional[str] = Field(default=None, max_length=255)


class PaymentResponse(BaseModel):
    id: int
    bookingId: int
    stripePaymentIntentId: Optional[str] = None
    stripeSetupIntentId: Optional[str] = None
    stripeChargeId: Optional[str] = None
    stripeRefundId: Optional[str] = None
    amount: float
    currency: str
    status: str
    paymentType: Optional[str] = None
    failureReason: Optional[str] = None
    details: Optional[dict] = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            bookingId=payment.booking_id,
            stripePaymentIntentId=payment.stripe_payment_intent_id,
            stripeSetupIntentId=payment.stripe_setup_intent_id,
            stripeChargeId=payment.stripe_charge_id,
            stripeRefundId=payment.stripe_refund_id,
            amount=payment.amount / 100,
            currency=payment.currency,
            status=payment.status,
            paymentType=payment.payment_type,
            failureReason=payment.failure_reason,
            details=payment.details,
        )
