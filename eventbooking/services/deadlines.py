"""
Payment deadlines for a booking.

The downpayment is due one calendar month before the event and the balance is
due on the event date. Deadlines are derived from the event date on every
read and never stored.
"""

from datetime import date, datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

DUE_SOON_DAYS = 7

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a calendar date (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Unsupported date value: {value!r}")


def calculate_deadlines(event_date: DateLike) -> dict:
    """
    Compute the downpayment and final payment deadlines for an event.

    relativedelta clamps to the last day of the previous month when the event
    day does not exist there (March 31 -> February 28/29).

    Returns:
        dict with downpayment_deadline and final_payment_deadline (dates)
    """
    event_day = _to_date(event_date)
    return {
        "downpayment_deadline": event_day - relativedelta(months=1),
        "final_payment_deadline": event_day,
    }


def get_days_until_deadline(deadline: DateLike, today: Optional[date] = None) -> int:
    """Whole days from today until the deadline; negative once it has passed."""
    today = today or date.today()
    return (_to_date(deadline) - today).days


def is_deadline_passed(deadline: DateLike, today: Optional[date] = None) -> bool:
    return get_days_until_deadline(deadline, today) < 0


def _plural(days: int) -> str:
    return "day" if days == 1 else "days"


def format_deadline_status(deadline: DateLike, today: Optional[date] = None) -> dict:
    """
    Classify a deadline relative to today.

    overdue: already passed, days is how many days ago
    due-soon: due today or within the next 7 days
    upcoming: more than 7 days away
    """
    days = get_days_until_deadline(deadline, today)

    if days < 0:
        overdue_days = abs(days)
        return {
            "status": "overdue",
            "days": overdue_days,
            "label": f"{overdue_days} {_plural(overdue_days)} overdue",
        }

    status = "due-soon" if days <= DUE_SOON_DAYS else "upcoming"
    return {"status": status, "days": days, "label": f"Due in {days} {_plural(days)}"}
