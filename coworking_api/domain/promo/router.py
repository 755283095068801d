"""Promo router - FastAPI endpoints for the promo code and QR tracking"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin, require_staff
from ...database import get_db
from ...models import User
from .schemas import PromoCodeUpdate, PromoMarketingUpdate, PromoTrackRequest, PublicPromoResponse
from .service import PromoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promo", tags=["Promo"])


def get_promo_service(db: Session = Depends(get_db)) -> PromoService:
    """Dependency injection for PromoService"""
    return PromoService(db)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/current", response_model=PublicPromoResponse)
async def get_current_promo(service: PromoService = Depends(get_promo_service)):
    """Active promo code with its marketing content"""
    return service.get_current_public()


@router.post("/track")
async def track_promo_event(
    data: PromoTrackRequest,
    service: PromoService = Depends(get_promo_service),
):
    """Record a scan, reveal or copy from the QR landing page"""
    return service.track_event(data.type, data.sessionId)


# ============================================================================
# ADMIN
# ============================================================================


@router.get("")
async def get_promo_config(
    _: User = Depends(require_staff),
    service: PromoService = Depends(get_promo_service),
):
    return service.get_config()


@router.put("")
async def replace_promo_code(
    data: PromoCodeUpdate,
    user: User = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    """Archive the current code and publish a new one"""
    return service.replace_code(data, user)


@router.put("/marketing")
async def update_promo_marketing(
    data: PromoMarketingUpdate,
    _: User = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return service.update_marketing(data)


@router.post("/deactivate")
async def deactivate_promo(
    _: User = Depends(require_admin),
    service: PromoService = Depends(get_promo_service),
):
    return service.deactivate()
