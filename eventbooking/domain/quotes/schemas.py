"""Quote domain schemas - quote generation, payment validation and the client quote page"""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from ..bookings.schemas import BookingResponse, PaymentSummaryResponse
from ..payments.schemas import PaymentResponse


class QuoteGenerate(BaseModel):
    amount: float
    quoteContent: Optional[str] = None
    allowBelowPaid: bool = False


class QuoteEdit(BaseModel):
    """Edit quote text and/or total without changing status"""

    quoteContent: Optional[str] = None
    totalAmount: Optional[float] = None
    allowBelowPaid: bool = False


class PaymentValidationRequest(BaseModel):
    """A payment the client reported, checked by staff against the reference number"""

    referenceNumber: Optional[str] = None
    amount: float
    paymentMethod: str
    paymentType: Optional[str] = None
    transactionId: Optional[str] = None
    notes: Optional[str] = None


class PaymentValidationResponse(BaseModel):
    payment: PaymentResponse
    booking: BookingResponse


class ClientQuoteBooking(BaseModel):
    """Booking details shown on the client quote page"""

    id: str
    customerName: str
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
    totalAmount: Optional[float] = None
    quoteContent: Optional[str] = None
    status: str


class ClientQuoteResponse(BaseModel):
    booking: ClientQuoteBooking
    paymentSummary: PaymentSummaryResponse
