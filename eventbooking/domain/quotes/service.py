"""Quote service - Quote generation, quote edits and payment validation"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...database import is_constraint_violation, transaction
from ...errors import NotFoundError, StorageError, ValidationError
from ...models import Booking, Payment, User
from ...permissions import ensure_admin, ensure_editor
from ...services.booking_status import (
    CANCELLED,
    INQUIRY,
    QUOTABLE_STATUSES,
    QUOTE_SENT,
    ensure_transition,
)
from ...utils.sanitization import sanitize_string
from ..bookings.repository import BookingRepository
from ..bookings.service import booking_to_dict, build_payment_summary
from ..payments.repository import PaymentRepository
from ..payments.service import (
    PaymentService,
    check_payment_fields,
    duplicate_reference_error,
    is_positive_amount,
)
from .repository import QuoteRepository
from .schemas import ClientQuoteBooking, PaymentValidationRequest, QuoteEdit, QuoteGenerate

logger = logging.getLogger(__name__)


def infer_payment_type(amount: float) -> str:
    """Small validated payments hold the date; larger ones count as the downpayment"""
    return "reservation" if amount < config.RESERVATION_FEE_THRESHOLD else "downpayment"


class QuoteService:
    """Service layer for quotes and payment validation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()
        self.booking_repo = BookingRepository()
        self.payment_repo = PaymentRepository()
        self.payment_service = PaymentService(db)

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def _check_quote_floor(self, booking: Booking, total: float, allow_below_paid: bool) -> None:
        """A quoted total may not drop below what was already paid without an explicit override"""
        if allow_below_paid:
            return
        total_paid = self.repo.get_total_paid(self.db, booking.id)
        if total < total_paid:
            raise ValidationError(
                f"Total {total:,.2f} is below the {total_paid:,.2f} already paid for {booking.id}",
                field="totalAmount",
            )

    def generate_quote(self, booking_id: str, data: QuoteGenerate, actor: User) -> Booking:
        """Attach a total (and optional custom text) and mark the quote as sent"""
        ensure_admin(actor)
        if not is_positive_amount(data.amount):
            raise ValidationError("Quote amount must be greater than zero", field="amount")

        booking = self._get_booking(booking_id)
        if booking.status not in QUOTABLE_STATUSES:
            raise ValidationError(
                f"Cannot generate a quote for a {booking.status} booking", field="status"
            )
        if booking.status == INQUIRY:
            ensure_transition(booking.id, booking.status, QUOTE_SENT)
        self._check_quote_floor(booking, data.amount, data.allowBelowPaid)

        updates = {
            "total_amount": data.amount,
            "status": QUOTE_SENT,
            "last_edited_by": actor.username,
            "last_edited_at": datetime.utcnow(),
        }
        if data.quoteContent is not None:
            updates["quote_content"] = sanitize_string(data.quoteContent)

        with transaction(self.db, "generate_quote", booking.id):
            self.booking_repo.update_booking(self.db, booking, **updates)

        logger.info(f"📝 Quote of {data.amount:,.2f} generated for {booking.id} by {actor.username}")
        return booking

    def edit_quote(self, booking_id: str, data: QuoteEdit, actor: User) -> Booking:
        """Change quote text or total; status is never changed here"""
        ensure_admin(actor)
        booking = self._get_booking(booking_id)

        if booking.status == CANCELLED:
            raise ValidationError(f"Booking {booking.id} is cancelled", field="status")

        updates = {}
        if data.totalAmount is not None:
            if booking.status == INQUIRY:
                raise ValidationError(
                    "Generate a quote before setting a total on an inquiry", field="totalAmount"
                )
            if not is_positive_amount(data.totalAmount):
                raise ValidationError("Total amount must be greater than zero", field="totalAmount")
            self._check_quote_floor(booking, data.totalAmount, data.allowBelowPaid)
            updates["total_amount"] = data.totalAmount

        if data.quoteContent is not None:
            updates["quote_content"] = sanitize_string(data.quoteContent)

        if not updates:
            return booking

        updates["last_edited_by"] = actor.username
        updates["last_edited_at"] = datetime.utcnow()

        with transaction(self.db, "edit_quote", booking.id):
            self.booking_repo.update_booking(self.db, booking, **updates)

        logger.info(f"✏️ Quote for {booking.id} edited by {actor.username}")
        return booking

    def validate_payment(
        self, booking_id: str, data: PaymentValidationRequest, actor: User
    ) -> tuple[Payment, Booking]:
        """
        Record a client-reported payment after checking its reference number.

        Inserting the payment, setting a missing total and confirming the booking
        happen in one transaction. A reference number already recorded for the
        booking is rejected so a retried validation cannot double-record.
        """
        ensure_editor(actor)

        reference_number = (data.referenceNumber or "").strip()
        if not reference_number:
            raise ValidationError("Reference number is required", field="referenceNumber")

        payment_type = data.paymentType or infer_payment_type(data.amount or 0)
        check_payment_fields(data.amount, payment_type, data.paymentMethod)

        booking = self.payment_service.get_payable_booking(booking_id)
        if self.payment_repo.reference_exists(self.db, booking.id, reference_number):
            raise duplicate_reference_error(booking.id, reference_number)

        fields = {
            "amount": data.amount,
            "paymentType": payment_type,
            "paymentMethod": data.paymentMethod.strip(),
            "referenceNumber": reference_number,
            "paidBy": booking.customer_name,
            "validatedBy": actor.username,
        }
        if data.transactionId:
            fields["transactionId"] = data.transactionId.strip()
        if data.notes:
            fields["notes"] = sanitize_string(data.notes)

        try:
            with transaction(self.db, "validate_payment", booking.id):
                if booking.total_amount is None:
                    self.booking_repo.update_booking(self.db, booking, total_amount=data.amount)
                payment = self.payment_service.record_payment(booking, fields, actor, validated=True)
        except StorageError as e:
            # Reference recorded by a concurrent validation
            if is_constraint_violation(e):
                raise duplicate_reference_error(booking_id, reference_number) from e
            raise

        logger.info(
            f"✅ Payment {reference_number} ({payment_type}, {data.amount:,.2f}) validated for "
            f"{booking.id} by {actor.username}"
        )
        return payment, booking

    def get_client_quote(self, booking_id: str, today: Optional[date] = None) -> dict:
        """Quote page data for the client; archived and cancelled bookings are not served"""
        booking = self._get_booking(booking_id)
        if booking.archived or booking.status == CANCELLED:
            raise NotFoundError("Quote", booking_id)

        payments = self.payment_repo.get_payments(self.db, booking_id=booking.id)
        details = booking_to_dict(booking)

        return {
            "booking": {k: v for k, v in details.items() if k in ClientQuoteBooking.model_fields},
            "paymentSummary": build_payment_summary(booking, payments, today),
        }
