import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), default="client", nullable=False)  # dev, admin, staff, client
    company_name = Column(String(255), nullable=True)
    newsletter_opt_in = Column(Boolean, default=False, nullable=False)
    stripe_customer_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user")


class Space(Base):
    __tablename__ = "spaces"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    # open-space, meeting-room-glass, meeting-room-floor, event-space, ...
    space_type = Column(String(100), index=True, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    min_capacity = Column(Integer, default=1, nullable=False)
    max_capacity = Column(Integer, default=1, nullable=False)
    # {"hourly": 5, "daily": 25, "weekly": 100, "monthly": 300, "per_person": true,
    #  "tiers": [{"min_people": 1, "max_people": 4, "hourly_rate": 20, "daily_rate": 120,
    #             "extra_person_hourly": 5, "extra_person_daily": 25}]}
    pricing = Column(JSON, nullable=False, default=dict)
    # {"enabled": true, "percentage": 50, "fixed_amount": null, "minimum_amount": 2000} (cents)
    deposit_policy = Column(JSON, nullable=True)
    opening_time = Column(String(5), default="09:00")
    closing_time = Column(String(5), default="20:00")
    is_active = Column(Boolean, default=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="space")


class BookingSettings(Base):
    """Singleton row holding booking-wide policies"""

    __tablename__ = "booking_settings"

    id = Column(Integer, primary_key=True, index=True)
    # [{"days_before_booking": 7, "charge_percentage": 0}, ...]
    cancellation_policy_open_space = Column(JSON, nullable=True)
    cancellation_policy_meeting_rooms = Column(JSON, nullable=True)
    deposit_hold_days = Column(Integer, nullable=True)
    notification_email = Column(String(255), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    space_id = Column(Integer, ForeignKey("spaces.id"), nullable=False)
    space_type = Column(String(100), nullable=False)
    date = Column(String(10), index=True, nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)  # HH:MM
    reservation_type = Column(String(20), default="hourly", nullable=False)
    number_of_people = Column(Integer, default=1, nullable=False)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    company_name = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)
    base_price = Column(Float, default=0, nullable=False)
    discount = Column(Float, default=0, nullable=False)
    total_price = Column(Float, default=0, nullable=False)
    promo_code = Column(String(50), nullable=True)
    deposit_amount = Column(Integer, nullable=True)  # cents
    # pending, confirmed, cancelled, completed, rejected
    status = Column(String(20), default="pending", index=True, nullable=False)
    # unpaid, authorized, paid, failed, refunded, partially_refunded
    payment_status = Column(String(30), default="unpaid", nullable=False)
    capture_method = Column(String(20), nullable=True)  # manual, deferred
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)
    stripe_setup_intent_id = Column(String(255), nullable=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_payment_method_id = Column(String(255), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String(500), nullable=True)
    cancellation_fee = Column(Float, nullable=True)
    refund_amount = Column(Float, nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bookings")
    space = relationship("Space", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking", cascade="all, delete-orphan")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    stripe_payment_intent_id = Column(String(255), unique=True, index=True, nullable=True)
    stripe_setup_intent_id = Column(String(255), nullable=True)
    stripe_charge_id = Column(String(255), index=True, nullable=True)
    stripe_refund_id = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=False)  # cents
    currency = Column(String(3), default="eur", nullable=False)
    # pending, requires_capture, processing, succeeded, failed, cancelled, refunded
    status = Column(String(30), default="pending", nullable=False)
    payment_type = Column(String(30), default="deposit_hold")  # deposit_hold, card_setup, deferred_deposit_hold
    failure_reason = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)  # card brand/last4, receipt url, refund info
    completed_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="payments")


class PromoConfig(Base):
    """Singleton row holding the current promo code, its history and stats"""

    __tablename__ = "promo_configs"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False)
    token = Column(String(64), nullable=False)
    description = Column(String(500), nullable=True)
    discount_type = Column(String(20), default="percentage", nullable=False)  # percentage, fixed, free_item
    discount_value = Column(Float, default=0, nullable=False)
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    max_uses = Column(Integer, default=0, nullable=False)  # 0 = unlimited
    current_uses = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    history = Column(JSON, default=list, nullable=False)
    # Stats
    total_views = Column(Integer, default=0, nullable=False)
    total_copies = Column(Integer, default=0, nullable=False)
    views_today = Column(Integer, default=0, nullable=False)
    copies_today = Column(Integer, default=0, nullable=False)
    # {"total_scans": 0, "total_reveals": 0, "total_copies": 0, "conversion_rate_reveal": 0,
    #  "conversion_rate_copy": 0, "scans_by_day": {}, "scans_by_hour": {}, "average_time_to_reveal": 0}
    scan_stats = Column(JSON, nullable=False, default=dict)
    marketing_title = Column(String(255), nullable=True)
    marketing_message = Column(Text, nullable=True)
    marketing_image_url = Column(String(500), nullable=True)
    marketing_cta_text = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    events = relationship("PromoEvent", back_populates="promo_config", cascade="all, delete-orphan")


class PromoEvent(Base):
    __tablename__ = "promo_events"

    id = Column(Integer, primary_key=True, index=True)
    promo_config_id = Column(Integer, ForeignKey("promo_configs.id"), nullable=False)
    event_type = Column(String(10), nullable=False)  # scan, reveal, copy
    session_id = Column(String(255), index=True, nullable=False)
    timestamp = Column(DateTime, nullable=False)

    promo_config = relationship("PromoConfig", back_populates="events")
