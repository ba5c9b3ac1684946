"""
Booking lifecycle: Inquiry -> QuoteSent -> Confirmed, or Cancelled.

Archiving is a separate flag and never changes status.
"""

import logging

from ..errors import ValidationError

logger = logging.getLogger(__name__)

INQUIRY = "Inquiry"
QUOTE_SENT = "QuoteSent"
CONFIRMED = "Confirmed"
CANCELLED = "Cancelled"

BOOKING_STATUSES = (INQUIRY, QUOTE_SENT, CONFIRMED, CANCELLED)

VALID_TRANSITIONS = {
    INQUIRY: [QUOTE_SENT, CONFIRMED, CANCELLED],  # Confirmed directly when a payment is validated
    QUOTE_SENT: [CONFIRMED, CANCELLED],
    CONFIRMED: [CANCELLED],
    CANCELLED: [],  # Terminal state
}

# Statuses a quote can be (re)generated from
QUOTABLE_STATUSES = (INQUIRY, QUOTE_SENT)


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Check whether a booking may move from current_status to new_status.

    Returns:
        bool: True if the transition is allowed
    """
    return new_status in VALID_TRANSITIONS.get(current_status, [])


def ensure_transition(booking_id: str, current_status: str, new_status: str) -> None:
    """Raise ValidationError unless the transition is allowed"""
    if new_status not in BOOKING_STATUSES:
        raise ValidationError(f"Unknown booking status '{new_status}'", field="status")

    if not validate_status_transition(current_status, new_status):
        logger.warning(f"⚠️ Rejected transition for {booking_id}: {current_status} → {new_status}")
        raise ValidationError(
            f"Cannot change booking status from {current_status} to {new_status}",
            field="status",
        )


def status_after_payment(current_status: str, payment_type: str, validated: bool = False) -> str:
    """
    Status a booking should hold after a payment is recorded.

    A validated payment confirms an Inquiry or QuoteSent booking. A directly
    added payment only does so when its type is ``full``. Any other status is
    left alone.
    """
    if current_status not in QUOTABLE_STATUSES:
        return current_status
    if validated or payment_type == "full":
        return CONFIRMED
    return current_status
