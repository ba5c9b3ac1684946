"""Quote repository - Payment totals used when pricing a booking"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database import read_operation
from ...models import Payment


class QuoteRepository:
    """Repository for quote-related reads"""

    @staticmethod
    @read_operation("get_total_paid")
    def get_total_paid(db: Session, booking_id: str) -> float:
        """Sum of recorded payments for a booking"""
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0.0))
            .filter(Payment.booking_id == booking_id)
            .scalar()
        )
        return float(total or 0)
