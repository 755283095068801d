"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import (
    validate_date_string,
    validate_email,
    validate_phone,
    validate_time_string,
)

RESERVATION_TYPES = ("hourly", "daily", "weekly", "monthly")
BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed", "rejected")


class BookingCalculateRequest(BaseModel):
    """Price quote for a space slot"""

    spaceId: int
    date: str
    startTime: str
    endTime: str
    numberOfPeople: int = Field(ge=1)
    promoCode: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return validate_date_string(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)


class PriceCalculationRequest(BaseModel):
    """Space-type pricing preview"""

    spaceType: str
    reservationType: str
    startTime: datetime
    endTime: datetime
    numberOfPeople: int = 1


class BookingCreate(BaseModel):
    spaceId: int
    date: str
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    reservationType: str = "hourly"
    numberOfPeople: int = Field(default=1, ge=1)
    contactName: Optional[str] = Field(default=None, max_length=255)
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    companyName: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = Field(default=None, max_length=2000)
    promoCode: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return validate_date_string(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_string(v)

    @field_validator("reservationType")
    @classmethod
    def validate_reservation_type(cls, v):
        if v not in RESERVATION_TYPES:
            raise ValueError(f"reservationType must be one of {', '.join(RESERVATION_TYPES)}")
        return v

    @field_validator("contactEmail")
    @classmethod
    def validate_contact_email(cls, v):
        return validate_email(v)

    @field_validator("contactPhone")
    @classmethod
    def validate_contact_phone(cls, v):
        return validate_phone(v)


class CancelBookingRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class AdminReservationUpdate(BaseModel):
    status: Optional[str] = None
    adminNotes: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in BOOKING_STATUSES:
            raise ValueError(f"status must be one of {', '.join(BOOKING_STATUSES)}")
        return v


class BookingResponse(BaseModel):
    id: int
    publicId: str
    spaceId: int
    spaceName: Optional[str] = None
    spaceType: str
    date: str
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    reservationType: str
    numberOfPeople: int
    contactName: Optional[str] = None
    contactEmail: Optional[str] = None
    contactPhone: Optional[str] = None
    companyName: Optional[str] = None
    message: Optional[str] = None
    basePrice: float
    discount: float
    totalPrice: float
    promoCode: Optional[str] = None
    depositAmount: Optional[int] = None
    status: str
    paymentStatus: str
    captureMethod: Optional[str] = None
    cancelledAt: Optional[datetime] = None
    cancelReason: Optional[str] = None
    cancellationFee: Optional[float] = None
    refundAmount: Optional[float] = None
    adminNotes: Optional[str] = None
    createdAt: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            publicId=booking.public_id,
            spaceId=booking.space_id,
            spaceName=booking.space.name if booking.space else None,
            spaceType=booking.space_type,
            date=booking.date,
            startTime=booking.start_time,
            endTime=booking.end_time,
            reservationType=booking.reservation_type,
            numberOfPeople=booking.number_of_people,
            contactName=booking.contact_name,
            contactEmail=booking.contact_email,
            contactPhone=booking.contact_phone,
            companyName=booking.company_name,
            message=booking.message,
            basePrice=booking.base_price,
            discount=booking.discount,
            totalPrice=booking.total_price,
            promoCode=booking.promo_code,
            depositAmount=booking.deposit_amount,
            status=booking.status,
            paymentStatus=booking.payment_status,
            captureMethod=booking.capture_method,
            cancelledAt=booking.cancelled_at,
            cancelReason=booking.cancel_reason,
            cancellationFee=booking.cancellation_fee,
            refundAmount=booking.refund_amount,
            adminNotes=booking.admin_notes,
            createdAt=booking.created_at,
        )


class CancellationPolicyTier(BaseModel):
    daysBeforeBooking: int = Field(ge=0)
    chargePercentage: int = Field(ge=0, le=100)


class BookingSettingsUpdate(BaseModel):
    cancellationPolicyOpenSpace: Optional[list[CancellationPolicyTier]] = None
    cancellationPolicyMeetingRooms: Optional[list[CancellationPolicyTier]] = None
    depositHoldDays: Optional[int] = Field(default=None, ge=0, le=90)
    notificationEmail: Optional[str] = None

    @field_validator("notificationEmail")
    @classmethod
    def validate_notification_email(cls, v):
        return validate_email(v)
