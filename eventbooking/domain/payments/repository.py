"""Payment repository - Database operations for payment records"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database import read_operation, write_operation
from ...models import Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    @read_operation("list_payments")
    def get_payments(db: Session, booking_id: Optional[str] = None) -> list[Payment]:
        """Get payments, most recent first; all bookings when booking_id is omitted"""
        query = db.query(Payment)
        if booking_id:
            query = query.filter(Payment.booking_id == booking_id)
        return query.order_by(Payment.paid_at.desc(), Payment.created_at.desc()).all()

    @staticmethod
    @read_operation("get_payment")
    def get_payment_by_id(db: Session, payment_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    @read_operation("check_reference_number")
    def reference_exists(db: Session, booking_id: str, reference_number: str) -> bool:
        return (
            db.query(Payment.id)
            .filter(
                Payment.booking_id == booking_id,
                func.lower(Payment.reference_number) == reference_number.lower(),
            )
            .first()
            is not None
        )

    @staticmethod
    @read_operation("recent_payments")
    def get_recent_payments(db: Session, limit: int = 10) -> list[Payment]:
        return db.query(Payment).order_by(Payment.paid_at.desc()).limit(limit).all()

    @staticmethod
    @read_operation("payment_stats")
    def get_payment_stats(db: Session) -> dict:
        total_revenue, count, bookings_paid = db.query(
            func.coalesce(func.sum(Payment.amount), 0.0),
            func.count(Payment.id),
            func.count(func.distinct(Payment.booking_id)),
        ).one()
        return {
            "total_revenue": float(total_revenue or 0),
            "transaction_count": count or 0,
            "bookings_paid": bookings_paid or 0,
        }

    @staticmethod
    @read_operation("revenue_between")
    def get_revenue_between(db: Session, start: datetime, end: datetime) -> float:
        total = (
            db.query(func.coalesce(func.sum(Payment.amount), 0.0))
            .filter(Payment.paid_at >= start, Payment.paid_at < end)
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    @write_operation("create_payment")
    def create_payment(db: Session, **payment_data) -> Payment:
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        db.refresh(payment)
        return payment

    @staticmethod
    @write_operation("delete_payment", idempotent=True)
    def delete_payment(db: Session, payment: Payment) -> None:
        db.delete(payment)
        db.flush()
