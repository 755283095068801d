"""Booking repository - Database operations for bookings and booking settings"""

from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingSettings, Space

ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_space(db: Session, space_id: int) -> Optional[Space]:
        return db.query(Space).filter(Space.id == space_id, Space.is_deleted == False).first()  # noqa: E712

    @staticmethod
    def get_space_by_type(db: Session, space_type: str) -> Optional[Space]:
        """First active space configured for a space type"""
        return (
            db.query(Space)
            .filter(Space.space_type == space_type, Space.is_active == True, Space.is_deleted == False)  # noqa: E712
            .order_by(Space.id)
            .first()
        )

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.space), joinedload(Booking.user))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_bookings_for_user(db: Session, user_id: int) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.space))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.date.desc(), Booking.start_time.desc())
            .all()
        )

    @staticmethod
    def find_conflicting_booking(
        db: Session,
        space_id: int,
        date: str,
        start_time: str,
        end_time: str,
        exclude_booking_id: Optional[int] = None,
    ) -> Optional[Booking]:
        """
        First pending/confirmed booking on the same space and date that overlaps
        [start_time, end_time). Bookings without times cover the whole day.
        """
        existing_start = func.coalesce(Booking.start_time, "00:00")
        existing_end = func.coalesce(Booking.end_time, "23:59")

        query = db.query(Booking).filter(
            Booking.space_id == space_id,
            Booking.date == date,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            or_(
                # existing booking is running when the new one starts
                and_(existing_start <= start_time, existing_end > start_time),
                # existing booking is running when the new one ends
                and_(existing_start < end_time, existing_end >= end_time),
                # existing booking sits inside the new range
                and_(existing_start >= start_time, existing_end <= end_time),
            ),
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.first()

    @staticmethod
    def search_bookings(
        db: Session,
        status: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        space_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[Booking]:
        query = db.query(Booking).options(joinedload(Booking.space))
        if status:
            query = query.filter(Booking.status == status)
        if date_from:
            query = query.filter(Booking.date >= date_from)
        if date_to:
            query = query.filter(Booking.date <= date_to)
        if space_id:
            query = query.filter(Booking.space_id == space_id)
        if search:
            term = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Booking.contact_name).like(term),
                    func.lower(Booking.contact_email).like(term),
                    func.lower(Booking.company_name).like(term),
                )
            )
        return query.order_by(Booking.date.desc(), Booking.start_time.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Update a booking with provided fields"""
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.commit()

    @staticmethod
    def get_settings(db: Session) -> Optional[BookingSettings]:
        return db.query(BookingSettings).order_by(BookingSettings.id).first()

    @staticmethod
    def get_or_create_settings(db: Session) -> BookingSettings:
        settings = db.query(BookingSettings).order_by(BookingSettings.id).first()
        if not settings:
            settings = BookingSettings()
            db.add(settings)
            db.commit()
            db.refresh(settings)
        return settings
