"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_ph_phone


class BookingFields(BaseModel):
    """Customer, event and service fields shared by create and update"""

    customerName: Optional[str] = None
    contactNumber: Optional[str] = None
    email: Optional[str] = None
    eventDate: Optional[date] = None
    eventType: Optional[str] = None
    venue: Optional[str] = None
    ceremonyVenue: Optional[str] = None
    guestCount: Optional[int] = Field(None, ge=0)
    services: Optional[list[str]] = None
    weddingSetup: Optional[str] = None
    serviceLights: Optional[bool] = None
    serviceSounds: Optional[bool] = None
    serviceLedWall: Optional[bool] = None
    serviceProjector: Optional[bool] = None
    serviceSmoke: Optional[bool] = None
    hasBand: Optional[bool] = None
    bandRider: Optional[str] = None
    additionalNotes: Optional[str] = None

    @field_validator("contactNumber")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_ph_phone(v)
        return v


class BookingCreate(BookingFields):
    """Schema for the public booking wizard. Status and quote fields are not accepted."""


class BookingUpdate(BookingFields):
    """Schema for admin edits; status changes go through the lifecycle rules"""

    status: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: str
    customerName: str
    contactNumber: Optional[str] = None
    email: str
    eventDate: date
    eventType: str
    venue: str
    ceremonyVenue: Optional[str] = None
    guestCount: Optional[int] = None
    services: list[str] = []
    weddingSetup: Optional[str] = None
    serviceLights: Optional[bool] = None
    serviceSounds: Optional[bool] = None
    serviceLedWall: Optional[bool] = None
    serviceProjector: Optional[bool] = None
    serviceSmoke: Optional[bool] = None
    hasBand: Optional[bool] = None
    bandRider: Optional[str] = None
    additionalNotes: Optional[str] = None
    totalAmount: Optional[float] = None
    quoteContent: Optional[str] = None
    status: str
    archived: bool = False
    archivedAt: Optional[datetime] = None
    archivedBy: Optional[str] = None
    lastEditedBy: Optional[str] = None
    lastEditedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeadlineStatus(BaseModel):
    status: str
    days: int
    label: str


class PaymentSummaryResponse(BaseModel):
    bookingId: str
    status: str
    totalAmount: float
    totalPaid: float
    remainingBalance: float
    isFullyPaid: bool
    downpaymentAmount: float
    finalPaymentAmount: float
    downpaymentPaid: float
    downpaymentRemaining: float
    overpayment: float
    paymentCount: int
    downpaymentDeadline: date
    finalPaymentDeadline: date
    downpaymentDeadlineStatus: DeadlineStatus
    finalPaymentDeadlineStatus: DeadlineStatus
