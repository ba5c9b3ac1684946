"""Dashboard repository - Aggregate reads for the admin dashboard"""

from collections import defaultdict
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database import read_operation
from ...models import Booking, Payment


class DashboardRepository:
    """Repository for dashboard queries"""

    @staticmethod
    @read_operation("booking_status_counts")
    def get_status_counts(db: Session) -> dict[str, int]:
        """Active (non-archived) bookings per status"""
        rows = (
            db.query(Booking.status, func.count(Booking.id))
            .filter(Booking.archived.is_(False))
            .group_by(Booking.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    @read_operation("upcoming_bookings")
    def get_upcoming_bookings(db: Session, start: date, end: date, limit: int = 5) -> list[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.event_date >= start,
                Booking.event_date <= end,
                Booking.archived.is_(False),
                Booking.status != "Cancelled",
            )
            .order_by(Booking.event_date.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    @read_operation("quoted_bookings")
    def get_quoted_bookings(db: Session) -> list[Booking]:
        """Active, non-cancelled bookings that carry a total"""
        return (
            db.query(Booking)
            .filter(
                Booking.archived.is_(False),
                Booking.status != "Cancelled",
                Booking.total_amount.isnot(None),
            )
            .order_by(Booking.event_date.asc())
            .all()
        )

    @staticmethod
    @read_operation("payments_by_booking")
    def get_payments_by_booking(db: Session, booking_ids: list[str]) -> dict[str, list[Payment]]:
        grouped: dict[str, list[Payment]] = defaultdict(list)
        if not booking_ids:
            return grouped
        for payment in db.query(Payment).filter(Payment.booking_id.in_(booking_ids)).all():
            grouped[payment.booking_id].append(payment)
        return grouped
