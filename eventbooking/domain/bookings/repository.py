"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...database import read_operation, write_operation
from ...models import Booking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    @read_operation("list_bookings")
    def get_bookings(
        db: Session,
        status: Optional[str] = None,
        archived: Optional[bool] = False,
        search: Optional[str] = None,
    ) -> list[Booking]:
        """Get bookings, newest first. archived=None returns both active and archived."""
        query = db.query(Booking)

        if archived is not None:
            query = query.filter(Booking.archived == archived)

        if status:
            query = query.filter(Booking.status == status)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Booking.id.ilike(pattern),
                    Booking.customer_name.ilike(pattern),
                    Booking.email.ilike(pattern),
                )
            )

        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()

    @staticmethod
    @read_operation("get_booking")
    def get_booking_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    @read_operation("check_booking_id")
    def booking_id_exists(db: Session, booking_id: str) -> bool:
        return db.query(Booking.id).filter(Booking.id == booking_id).first() is not None

    @staticmethod
    @read_operation("get_bookings_between")
    def get_bookings_between(
        db: Session, start: date, end: date, include_cancelled: bool = False
    ) -> list[Booking]:
        """Non-archived bookings with start <= event_date < end, ordered by event date"""
        query = db.query(Booking).filter(
            Booking.event_date >= start,
            Booking.event_date < end,
            Booking.archived.is_(False),
        )
        if not include_cancelled:
            query = query.filter(Booking.status != "Cancelled")
        return query.order_by(Booking.event_date.asc(), Booking.id.asc()).all()

    @staticmethod
    @write_operation("create_booking")
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        db.refresh(booking)
        return booking

    @staticmethod
    @write_operation("update_booking")
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """Apply column updates; explicit None values clear the column"""
        for key, value in updates.items():
            if hasattr(booking, key):
                setattr(booking, key, value)

        db.flush()
        return booking

    @staticmethod
    @write_operation("delete_booking", idempotent=True)
    def delete_booking(db: Session, booking: Booking) -> None:
        """Delete a booking; its payments go with it"""
        db.delete(booking)
        db.flush()
