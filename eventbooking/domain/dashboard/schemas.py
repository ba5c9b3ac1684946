"""Dashboard schemas"""

from datetime import date

from pydantic import BaseModel

from ..bookings.schemas import BookingResponse
from ..payments.schemas import PaymentResponse


class OverduePayment(BaseModel):
    bookingId: str
    customerName: str
    eventDate: date
    deadline: str  # downpayment or final
    amountDue: float
    daysOverdue: int


class DashboardResponse(BaseModel):
    totalRevenue: float
    monthRevenue: float
    pendingRevenue: float
    statusCounts: dict[str, int]
    upcomingEvents: list[BookingResponse]
    recentPayments: list[PaymentResponse]
    overduePayments: list[OverduePayment]
