"""Booking router - FastAPI endpoints for quotes, reservations and settings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user, require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import booking_rate_limiter
from .schemas import (
    AdminReservationUpdate,
    BookingCalculateRequest,
    BookingCreate,
    BookingResponse,
    BookingSettingsUpdate,
    CancelBookingRequest,
    PriceCalculationRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])
admin_router = APIRouter(prefix="/admin/reservations", tags=["Admin Reservations"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# PUBLIC PRICING
# ============================================================================


@router.post("/booking/calculate")
async def calculate_booking(
    data: BookingCalculateRequest,
    _: None = Depends(booking_rate_limiter),
    service: BookingService = Depends(get_booking_service),
):
    """Check availability and quote a slot"""
    return service.calculate_quote(data)


@router.post("/calculate-price")
async def calculate_price(
    data: PriceCalculationRequest,
    service: BookingService = Depends(get_booking_service),
):
    return service.calculate_price_preview(data)


# ============================================================================
# RESERVATIONS
# ============================================================================


@router.post("/bookings", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    user: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking, for a signed-in user or a guest"""
    booking = await service.create_booking(data, user)
    return BookingResponse.from_booking(booking)


@router.get("/bookings", response_model=list[BookingResponse])
async def list_my_bookings(
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return [BookingResponse.from_booking(b) for b in service.list_user_bookings(user)]


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_booking(service.get_booking(booking_id, user))


@router.get("/bookings/{booking_id}/cancellation-fees")
async def preview_cancellation_fees(
    booking_id: int,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Fee and refund a cancellation would produce right now"""
    return service.preview_cancellation(booking_id)


@router.post("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    data: Optional[CancelBookingRequest] = None,
    user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.cancel_booking(booking_id, user, data.reason if data else None)


# ============================================================================
# SETTINGS
# ============================================================================


@router.get("/booking-settings")
async def get_booking_settings(service: BookingService = Depends(get_booking_service)):
    return service.get_settings()


@router.put("/booking-settings")
async def update_booking_settings(
    data: BookingSettingsUpdate,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    return service.update_settings(data)


# ============================================================================
# ADMIN RESERVATIONS
# ============================================================================


@admin_router.get("", response_model=list[BookingResponse])
async def list_reservations(
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
    status: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    space_id: Optional[int] = Query(None, alias="spaceId"),
    search: Optional[str] = Query(None),
):
    bookings = service.search_reservations(status, date_from, date_to, space_id, search)
    return [BookingResponse.from_booking(b) for b in bookings]


@admin_router.get("/export")
async def export_reservations_csv(
    user: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
    status: Optional[str] = Query(None),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    space_id: Optional[int] = Query(None, alias="spaceId"),
    search: Optional[str] = Query(None),
):
    """Export reservations as CSV with optional filters"""
    return service.export_reservations_csv(user, status, date_from, date_to, space_id, search)


@admin_router.patch("/{booking_id}", response_model=BookingResponse)
async def update_reservation(
    booking_id: int,
    data: AdminReservationUpdate,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Change a reservation status; confirming emails the customer"""
    booking = await service.update_reservation(booking_id, data)
    return BookingResponse.from_booking(booking)


@admin_router.delete("/{booking_id}")
async def delete_reservation(
    booking_id: int,
    _: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    service.delete_reservation(booking_id)
    return {"message": "Reservation deleted"}
