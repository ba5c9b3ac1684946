"""Payment aggregation for a booking: paid, remaining and downpayment figures"""

from typing import Any, Iterable, Optional

from .. import config

PAYMENT_TYPES = ("reservation", "downpayment", "partial", "full")

# Only these count toward the downpayment bucket; partial and full payments
# count toward the total paid but not the downpayment
DOWNPAYMENT_TYPES = ("reservation", "downpayment")


def _field(payment: Any, name: str):
    if isinstance(payment, dict):
        return payment.get(name)
    return getattr(payment, name, None)


def calculate_payment_summary(
    total_amount: Optional[float],
    payments: Iterable[Any],
    downpayment_rate: Optional[float] = None,
) -> dict:
    """
    Derive payment status from a quoted total and the recorded payments.

    Payments may be ORM rows or dicts carrying ``amount`` and ``payment_type``.
    A booking without a quoted total (None or 0) is never fully paid.
    remaining_balance goes negative on overpayment; downpayment_remaining never does.
    """
    rate = config.DOWNPAYMENT_RATE if downpayment_rate is None else downpayment_rate
    total = float(total_amount or 0)

    total_paid = 0.0
    downpayment_paid = 0.0
    for payment in payments:
        amount = float(_field(payment, "amount") or 0)
        total_paid += amount
        if _field(payment, "payment_type") in DOWNPAYMENT_TYPES:
            downpayment_paid += amount

    downpayment_amount = total * rate

    return {
        "total_amount": total,
        "total_paid": total_paid,
        "remaining_balance": total - total_paid,
        "is_fully_paid": total > 0 and total_paid >= total,
        "downpayment_amount": downpayment_amount,
        "final_payment_amount": total - downpayment_amount,
        "downpayment_paid": downpayment_paid,
        "downpayment_remaining": max(0.0, downpayment_amount - downpayment_paid),
        "overpayment": max(0.0, total_paid - total),
    }
