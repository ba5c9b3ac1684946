"""Payment service - Recording, listing and removing payments"""

import logging
import math
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...database import is_constraint_violation, transaction
from ...errors import NotFoundError, StorageError, ValidationError
from ...models import Booking, Payment, User
from ...permissions import ensure_admin, ensure_editor
from ...services.booking_status import CANCELLED, status_after_payment
from ...services.payment_summary import PAYMENT_TYPES
from ...utils.sanitization import sanitize_string
from ..bookings.mapping import map_payment_to_row, map_row_to_payment, model_to_row
from ..bookings.repository import BookingRepository
from .repository import PaymentRepository
from .schemas import PaymentCreate

logger = logging.getLogger(__name__)


def payment_to_dict(payment: Payment) -> dict:
    """Application shape of a payment"""
    return map_row_to_payment(model_to_row(payment))


def is_positive_amount(amount: Optional[float]) -> bool:
    """False for None, zero, negatives, NaN and infinity"""
    return amount is not None and math.isfinite(amount) and amount > 0


def duplicate_reference_error(booking_id: str, reference_number: str) -> ValidationError:
    return ValidationError(
        f"Reference number {reference_number} is already recorded for {booking_id}",
        field="referenceNumber",
    )


def check_payment_fields(amount: Optional[float], payment_type: str, payment_method: str) -> None:
    """Reject malformed payment input before anything is written"""
    if not is_positive_amount(amount):
        raise ValidationError("Payment amount must be greater than zero", field="amount")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError(
            f"Payment type must be one of: {', '.join(PAYMENT_TYPES)}", field="paymentType"
        )
    if not payment_method or not payment_method.strip():
        raise ValidationError("Payment method is required", field="paymentMethod")


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.booking_repo = BookingRepository()

    def list_payments(self, booking_id: Optional[str] = None) -> list[Payment]:
        return self.repo.get_payments(self.db, booking_id=booking_id)

    def get_payable_booking(self, booking_id: str) -> Booking:
        """The booking a payment is recorded against; cancelled bookings take no payments"""
        if not booking_id or not booking_id.strip():
            raise ValidationError("Booking id is required", field="bookingId")

        booking = self.booking_repo.get_booking_by_id(self.db, booking_id.strip())
        if not booking:
            raise NotFoundError("Booking", booking_id)
        if booking.status == CANCELLED:
            raise ValidationError(
                f"Booking {booking.id} is cancelled and cannot take payments", field="bookingId"
            )
        return booking

    def record_payment(
        self, booking: Booking, fields: dict, actor: User, validated: bool = False
    ) -> Payment:
        """
        Insert a payment and apply the resulting status change.

        Runs inside the caller's transaction; nothing is committed here.
        """
        row = map_payment_to_row(fields)
        row["booking_id"] = booking.id
        row.setdefault("paid_at", datetime.utcnow())
        if not row.get("validated_by"):
            row["validated_by"] = actor.username

        payment = self.repo.create_payment(self.db, **row)

        new_status = status_after_payment(booking.status, payment.payment_type, validated=validated)
        if new_status != booking.status:
            logger.info(f"✅ Booking {booking.id} transitioned: {booking.status} → {new_status}")
            self.booking_repo.update_booking(
                self.db,
                booking,
                status=new_status,
                last_edited_by=actor.username,
                last_edited_at=datetime.utcnow(),
            )

        return payment

    def create_payment(self, data: PaymentCreate, actor: User) -> Payment:
        """Record a payment; a full payment confirms an Inquiry or QuoteSent booking"""
        ensure_editor(actor)
        check_payment_fields(data.amount, data.paymentType, data.paymentMethod)
        booking = self.get_payable_booking(data.bookingId)
        if data.referenceNumber and self.repo.reference_exists(self.db, booking.id, data.referenceNumber):
            raise duplicate_reference_error(booking.id, data.referenceNumber)

        fields = data.model_dump(exclude_unset=True, exclude={"bookingId"})
        fields["paymentMethod"] = data.paymentMethod.strip()
        if "notes" in fields:
            fields["notes"] = sanitize_string(fields["notes"])
        if fields.get("paidAt") is None:
            fields.pop("paidAt", None)

        try:
            with transaction(self.db, "add_payment", booking.id):
                payment = self.record_payment(booking, fields, actor)
        except StorageError as e:
            if data.referenceNumber and is_constraint_violation(e):
                raise duplicate_reference_error(data.bookingId.strip(), data.referenceNumber) from e
            raise

        logger.info(
            f"💰 {payment.payment_type} payment of {payment.amount:,.2f} recorded for "
            f"{booking.id} by {actor.username}"
        )
        return payment

    def delete_payment(self, payment_id: str, actor: User) -> str:
        """
        Remove a payment and return its booking id.

        The booking status is left as is even if it is no longer fully paid.
        """
        ensure_admin(actor)
        payment = self.repo.get_payment_by_id(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)

        booking_id = payment.booking_id
        with transaction(self.db, "delete_payment", payment_id, idempotent=True):
            self.repo.delete_payment(self.db, payment)

        logger.info(f"🗑️ Payment {payment_id} for {booking_id} removed by {actor.username}")
        return booking_id

    def get_payment_stats(self) -> dict:
        stats = self.repo.get_payment_stats(self.db)
        return {
            "totalRevenue": stats["total_revenue"],
            "transactionCount": stats["transaction_count"],
            "bookingsPaid": stats["bookings_paid"],
        }
