"""Booking service - Business logic for booking operations"""

import logging
import random
from datetime import date, datetime
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ... import config
from ...database import is_constraint_violation, transaction
from ...errors import NotFoundError, StorageError, ValidationError
from ...models import Booking, User
from ...permissions import ensure_admin, ensure_editor
from ...services.booking_status import (
    CANCELLED,
    CONFIRMED,
    INQUIRY,
    QUOTE_SENT,
    ensure_transition,
)
from ...services.deadlines import calculate_deadlines, format_deadline_status
from ...services.payment_summary import calculate_payment_summary
from ...shared.validators import validate_email, validate_required_text
from ...utils.sanitization import sanitize_fields
from ..payments.repository import PaymentRepository
from .mapping import map_booking_to_row, map_row_to_booking, model_to_row
from .repository import BookingRepository
from .schemas import BookingCreate, BookingUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "customerName": "Customer name",
    "email": "Email",
    "eventDate": "Event date",
    "eventType": "Event type",
    "venue": "Venue",
}

# Escaped before storage; shown back in the admin portal and on the quote page
FREE_TEXT_FIELDS = ("ceremonyVenue", "weddingSetup", "bandRider", "additionalNotes")


def booking_to_dict(booking: Booking) -> dict:
    """Application shape of a booking"""
    return map_row_to_booking(model_to_row(booking))


def build_payment_summary(
    booking: Booking, payments: Iterable[Any], today: Optional[date] = None
) -> dict:
    """Payment figures plus both deadlines and their urgency for one booking"""
    payments = list(payments)
    summary = calculate_payment_summary(booking.total_amount, payments)
    deadlines = calculate_deadlines(booking.event_date)

    return {
        "bookingId": booking.id,
        "status": booking.status,
        "totalAmount": summary["total_amount"],
        "totalPaid": summary["total_paid"],
        "remainingBalance": summary["remaining_balance"],
        "isFullyPaid": summary["is_fully_paid"],
        "downpaymentAmount": summary["downpayment_amount"],
        "finalPaymentAmount": summary["final_payment_amount"],
        "downpaymentPaid": summary["downpayment_paid"],
        "downpaymentRemaining": summary["downpayment_remaining"],
        "overpayment": summary["overpayment"],
        "paymentCount": len(payments),
        "downpaymentDeadline": deadlines["downpayment_deadline"],
        "finalPaymentDeadline": deadlines["final_payment_deadline"],
        "downpaymentDeadlineStatus": format_deadline_status(
            deadlines["downpayment_deadline"], today
        ),
        "finalPaymentDeadlineStatus": format_deadline_status(
            deadlines["final_payment_deadline"], today
        ),
    }


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.payment_repo = PaymentRepository()

    def list_bookings(
        self,
        status: Optional[str] = None,
        archived: Optional[bool] = False,
        search: Optional[str] = None,
    ) -> list[Booking]:
        return self.repo.get_bookings(self.db, status=status, archived=archived, search=search)

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        return booking

    def _check_required(self, fields: dict, partial: bool) -> dict:
        for attribute, label in REQUIRED_FIELDS.items():
            if partial and attribute not in fields:
                continue
            value = fields.get(attribute)
            if value is None:
                raise ValidationError(f"{label} is required", field=attribute)
            if isinstance(value, str):
                try:
                    fields[attribute] = validate_required_text(value, label)
                except ValueError as e:
                    raise ValidationError(str(e), field=attribute) from e

        if "email" in fields:
            try:
                fields["email"] = validate_email(fields["email"])
            except ValueError as e:
                raise ValidationError(str(e), field="email") from e

        return sanitize_fields(fields, FREE_TEXT_FIELDS)

    def _insert_with_new_id(self, row: dict) -> Booking:
        """
        Insert under a fresh BA-<year>-<1000..9999> id.

        Each insert runs in a savepoint; a number taken between the check and
        the insert is redrawn.
        """
        year = datetime.utcnow().year
        for _ in range(config.BOOKING_ID_ATTEMPTS):
            candidate = f"BA-{year}-{random.randint(1000, 9999)}"
            if self.repo.booking_id_exists(self.db, candidate):
                continue
            try:
                with self.db.begin_nested():
                    return self.repo.create_booking(self.db, id=candidate, **row)
            except StorageError as e:
                if not is_constraint_violation(e):
                    raise
                logger.warning(f"⚠️ Booking id {candidate} was taken concurrently, drawing another")

        logger.error(f"❌ No free booking id for {year} after {config.BOOKING_ID_ATTEMPTS} attempts")
        raise StorageError("generate_booking_id")

    def create_booking(self, data: BookingCreate) -> Booking:
        """Create a booking from the public booking wizard"""
        fields = self._check_required(data.model_dump(exclude_unset=True), partial=False)

        row = map_booking_to_row(fields)
        row["status"] = INQUIRY
        row["archived"] = False
        row.setdefault("services", [])

        with transaction(self.db, "create_booking"):
            booking = self._insert_with_new_id(row)

        logger.info(f"📥 Booking {booking.id} created for {booking.event_type} on {booking.event_date}")
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate, actor: User) -> Booking:
        """Edit customer, event and service details; status only along allowed transitions"""
        ensure_editor(actor)
        booking = self.get_booking(booking_id)

        fields = data.model_dump(exclude_unset=True)
        new_status = fields.pop("status", None)
        fields = self._check_required(fields, partial=True)

        updates = map_booking_to_row(fields)

        if new_status is not None and new_status != booking.status:
            ensure_transition(booking.id, booking.status, new_status)
            if new_status in (QUOTE_SENT, CONFIRMED) and booking.total_amount is None:
                raise ValidationError(
                    "Generate a quote before moving this booking forward", field="status"
                )
            updates["status"] = new_status

        if not updates:
            return booking

        updates["last_edited_by"] = actor.username
        updates["last_edited_at"] = datetime.utcnow()

        with transaction(self.db, "update_booking", booking.id):
            self.repo.update_booking(self.db, booking, **updates)

        logger.info(f"✏️ Booking {booking.id} updated by {actor.username}: {sorted(updates)}")
        return booking

    def cancel_booking(self, booking_id: str, actor: User) -> Booking:
        ensure_editor(actor)
        booking = self.get_booking(booking_id)

        if booking.status == CANCELLED:
            raise ValidationError(f"Booking {booking.id} is already cancelled", field="status")
        ensure_transition(booking.id, booking.status, CANCELLED)

        with transaction(self.db, "cancel_booking", booking.id):
            self.repo.update_booking(
                self.db,
                booking,
                status=CANCELLED,
                last_edited_by=actor.username,
                last_edited_at=datetime.utcnow(),
            )

        logger.info(f"🚫 Booking {booking.id} cancelled by {actor.username}")
        return booking

    def archive_booking(self, booking_id: str, actor: User) -> Booking:
        """Hide a booking from active views. Status is left unchanged."""
        ensure_admin(actor)
        booking = self.get_booking(booking_id)

        if booking.archived:
            return booking

        with transaction(self.db, "archive_booking", booking.id, idempotent=True):
            self.repo.update_booking(
                self.db,
                booking,
                archived=True,
                archived_at=datetime.utcnow(),
                archived_by=actor.username,
            )

        logger.info(f"🗄️ Booking {booking.id} archived by {actor.username}")
        return booking

    def restore_booking(self, booking_id: str, actor: User) -> Booking:
        ensure_admin(actor)
        booking = self.get_booking(booking_id)

        if not booking.archived:
            return booking

        with transaction(self.db, "restore_booking", booking.id, idempotent=True):
            self.repo.update_booking(
                self.db, booking, archived=False, archived_at=None, archived_by=None
            )

        logger.info(f"♻️ Booking {booking.id} restored by {actor.username}")
        return booking

    def delete_booking(self, booking_id: str, actor: User) -> bool:
        """Permanently delete a booking and its payments"""
        ensure_admin(actor)
        booking = self.get_booking(booking_id)

        with transaction(self.db, "delete_booking", booking.id, idempotent=True):
            self.repo.delete_booking(self.db, booking)

        logger.info(f"🗑️ Booking {booking_id} deleted by {actor.username}")
        return True

    def get_schedule(self, year: int, month: int) -> list[Booking]:
        """Active bookings with an event in the given month"""
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", field="month")

        start = date(year, month, 1)
        return self.repo.get_bookings_between(self.db, start, start + relativedelta(months=1))

    def get_payment_summary(self, booking_id: str, today: Optional[date] = None) -> dict:
        booking = self.get_booking(booking_id)
        payments = self.payment_repo.get_payments(self.db, booking_id=booking.id)
        return build_payment_summary(booking, payments, today)
