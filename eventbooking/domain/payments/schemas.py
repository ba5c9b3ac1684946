"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PaymentCreate(BaseModel):
    """Schema for recording a payment directly against a booking"""

    bookingId: str
    amount: float
    paymentType: str
    paymentMethod: str
    referenceNumber: Optional[str] = None
    transactionId: Optional[str] = None
    paidAt: Optional[datetime] = None
    paidBy: Optional[str] = None
    validatedBy: Optional[str] = None
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    """Schema for payment response"""

    id: str
    bookingId: str
    amount: float
    paymentType: str
    paymentMethod: str
    referenceNumber: Optional[str] = None
    transactionId: Optional[str] = None
    paidAt: Optional[datetime] = None
    paidBy: Optional[str] = None
    validatedBy: Optional[str] = None
    notes: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentStatsResponse(BaseModel):
    totalRevenue: float
    transactionCount: int
    bookingsPaid: int
