"""Stripe service - PaymentIntents, SetupIntents, refunds and customers"""

import logging
from typing import Optional

import stripe

from ...config import STRIPE_CURRENCY, STRIPE_SECRET_KEY

logger = logging.getLogger(__name__)


class StripeService:
    """Thin wrapper over the Stripe SDK for deposit holds"""

    def __init__(self):
        self.api_key = STRIPE_SECRET_KEY
        self.currency = STRIPE_CURRENCY

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail until configured")
        else:
            stripe.api_key = self.api_key
            logger.info("Stripe client configured")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _require_client(self):
        if not self.api_key:
            raise Exception("Stripe client not configured")

    def get_or_create_customer(self, email: str, name: Optional[str] = None, metadata: Optional[dict] = None) -> str:
        """Return the Stripe customer id for an email, creating the customer when absent"""
        self._require_client()
        existing = stripe.Customer.list(email=email, limit=1)
        if existing.data:
            return existing.data[0].id

        customer = stripe.Customer.create(email=email, name=name or None, metadata=metadata or {})
        logger.info(f"✅ Stripe customer created: {customer.id}")
        return customer.id

    def create_payment_intent(
        self,
        amount: int,
        customer_id: Optional[str] = None,
        metadata: Optional[dict] = None,
        capture_method: str = "manual",
        payment_method_id: Optional[str] = None,
        off_session: bool = False,
        description: Optional[str] = None,
    ):
        """Create a PaymentIntent; manual capture places a hold on the card"""
        self._require_client()
        params = {
            "amount": amount,
            "currency": self.currency,
            "capture_method": capture_method,
            "metadata": metadata or {},
        }
        if customer_id:
            params["customer"] = customer_id
        if description:
            params["description"] = description
        if payment_method_id:
            params["payment_method"] = payment_method_id
            params["confirm"] = True
            params["off_session"] = off_session
        else:
            params["automatic_payment_methods"] = {"enabled": True}

        intent = stripe.PaymentIntent.create(**params)
        logger.info(f"✅ PaymentIntent created: {intent.id} ({amount} cents, capture={capture_method})")
        return intent

    def create_setup_intent(self, customer_id: str, metadata: Optional[dict] = None):
        """Save a card for later off-session use"""
        self._require_client()
        intent = stripe.SetupIntent.create(
            customer=customer_id,
            usage="off_session",
            payment_method_types=["card"],
            metadata=metadata or {},
        )
        logger.info(f"✅ SetupIntent created: {intent.id}")
        return intent

    def retrieve_payment_intent(self, payment_intent_id: str):
        self._require_client()
        return stripe.PaymentIntent.retrieve(payment_intent_id)

    def cancel_payment_intent(self, payment_intent_id: str):
        self._require_client()
        logger.info(f"🔓 Releasing hold {payment_intent_id}")
        return stripe.PaymentIntent.cancel(payment_intent_id)

    def capture_payment_intent(self, payment_intent_id: str, amount_to_capture: Optional[int] = None):
        self._require_client()
        logger.info(f"💳 Capturing {payment_intent_id} ({amount_to_capture or 'full'} cents)")
        if amount_to_capture is not None:
            return stripe.PaymentIntent.capture(payment_intent_id, amount_to_capture=amount_to_capture)
        return stripe.PaymentIntent.capture(payment_intent_id)

    def create_refund(self, payment_intent_id: str, amount: Optional[int] = None, reason: Optional[str] = None):
        self._require_client()
        params = {"payment_intent": payment_intent_id}
        if amount is not None:
            params["amount"] = amount
        if reason:
            params["reason"] = reason
        refund = stripe.Refund.create(**params)
        logger.info(f"💸 Refund {refund.id} created for {payment_intent_id}")
        return refund

    def retrieve_setup_intent(self, setup_intent_id: str):
        self._require_client()
        return stripe.SetupIntent.retrieve(setup_intent_id)

    def cancel_setup_intent(self, setup_intent_id: str):
        self._require_client()
        return stripe.SetupIntent.cancel(setup_intent_id)

    def retrieve_charge(self, charge_id: str):
        self._require_client()
        return stripe.Charge.retrieve(charge_id)


# Global service instance
stripe_service = StripeService()
