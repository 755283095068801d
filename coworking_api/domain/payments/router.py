"""Payment router - FastAPI endpoints for deposit intents and refunds"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import CreateIntentRequest, CreateIntentResponse, PaymentResponse, RefundRequest
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/create-intent", response_model=CreateIntentResponse)
async def create_payment_intent(
    data: CreateIntentRequest,
    user: Optional[User] = Depends(get_optional_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Create the card hold, or the card setup for far-off bookings"""
    return service.create_intent(data.bookingId, user)


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    data: RefundRequest,
    user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.refund_payment(payment_id, data.amount, data.reason, user)
    return PaymentResponse.from_payment(payment)
