"""Dashboard service - Revenue, pipeline and overdue payment overview"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ...services.booking_status import BOOKING_STATUSES, CONFIRMED
from ...services.deadlines import calculate_deadlines, get_days_until_deadline
from ...services.payment_summary import calculate_payment_summary
from ..bookings.service import booking_to_dict
from ..payments.repository import PaymentRepository
from ..payments.service import payment_to_dict
from .repository import DashboardRepository

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 30
UPCOMING_LIMIT = 5
RECENT_PAYMENTS_LIMIT = 10


class DashboardService:
    """Service layer for the admin dashboard"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()
        self.payment_repo = PaymentRepository()

    def get_dashboard(self, today: Optional[date] = None) -> dict:
        today = today or date.today()

        counts = self.repo.get_status_counts(self.db)
        status_counts = {status: counts.get(status, 0) for status in BOOKING_STATUSES}

        upcoming = self.repo.get_upcoming_bookings(
            self.db, today, today + timedelta(days=UPCOMING_WINDOW_DAYS), UPCOMING_LIMIT
        )
        recent = self.payment_repo.get_recent_payments(self.db, RECENT_PAYMENTS_LIMIT)

        month_start = datetime(today.year, today.month, 1)
        month_revenue = self.payment_repo.get_revenue_between(
            self.db, month_start, month_start + relativedelta(months=1)
        )

        pending_revenue, overdue = self._receivables(today)

        return {
            "totalRevenue": self.payment_repo.get_payment_stats(self.db)["total_revenue"],
            "monthRevenue": month_revenue,
            "pendingRevenue": pending_revenue,
            "statusCounts": status_counts,
            "upcomingEvents": [booking_to_dict(b) for b in upcoming],
            "recentPayments": [payment_to_dict(p) for p in recent],
            "overduePayments": overdue,
        }

    def _receivables(self, today: date) -> tuple[float, list[dict]]:
        """
        Outstanding balances of quoted bookings, and confirmed bookings whose
        downpayment or final payment deadline has passed unpaid.
        """
        bookings = self.repo.get_quoted_bookings(self.db)
        payments = self.repo.get_payments_by_booking(self.db, [b.id for b in bookings])

        pending_revenue = 0.0
        overdue = []
        for booking in bookings:
            summary = calculate_payment_summary(booking.total_amount, payments.get(booking.id, []))
            pending_revenue += max(0.0, summary["remaining_balance"])

            if booking.status != CONFIRMED:
                continue

            deadlines = calculate_deadlines(booking.event_date)
            final_days = get_days_until_deadline(deadlines["final_payment_deadline"], today)
            downpayment_days = get_days_until_deadline(deadlines["downpayment_deadline"], today)

            if final_days < 0 and summary["remaining_balance"] > 0:
                kind, amount_due, days_overdue = "final", summary["remaining_balance"], -final_days
            elif downpayment_days < 0 and summary["downpayment_remaining"] > 0:
                kind, amount_due, days_overdue = (
                    "downpayment",
                    summary["downpayment_remaining"],
                    -downpayment_days,
                )
            else:
                continue

            overdue.append(
                {
                    "bookingId": booking.id,
                    "customerName": booking.customer_name,
                    "eventDate": booking.event_date,
                    "deadline": kind,
                    "amountDue": amount_due,
                    "daysOverdue": days_overdue,
                }
            )

        if overdue:
            logger.info(f"⏰ {len(overdue)} confirmed booking(s) with overdue payments")
        return pending_revenue, overdue
