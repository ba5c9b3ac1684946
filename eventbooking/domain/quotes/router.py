"""Quote router - quote generation, payment validation and the public quote page"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ..bookings.schemas import BookingResponse
from ..bookings.service import booking_to_dict
from ..payments.service import payment_to_dict
from .schemas import (
    ClientQuoteResponse,
    PaymentValidationRequest,
    PaymentValidationResponse,
    QuoteEdit,
    QuoteGenerate,
)
from .service import QuoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


@router.get("/{booking_id}/client", response_model=ClientQuoteResponse)
def get_client_quote(booking_id: str, service: QuoteService = Depends(get_quote_service)):
    """Public quote page for a booking (no authentication)"""
    return service.get_client_quote(booking_id)


@router.post("/{booking_id}", response_model=BookingResponse)
def generate_quote(
    booking_id: str,
    data: QuoteGenerate,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Set the quoted total and mark the quote as sent (admin only)"""
    return booking_to_dict(service.generate_quote(booking_id, data, current_user))


@router.patch("/{booking_id}", response_model=BookingResponse)
def edit_quote(
    booking_id: str,
    data: QuoteEdit,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    return booking_to_dict(service.edit_quote(booking_id, data, current_user))


@router.post("/{booking_id}/validate-payment", response_model=PaymentValidationResponse, status_code=201)
def validate_payment(
    booking_id: str,
    data: PaymentValidationRequest,
    current_user: User = Depends(get_current_user),
    service: QuoteService = Depends(get_quote_service),
):
    """Record a client-reported payment and confirm the booking"""
    payment, booking = service.validate_payment(booking_id, data, current_user)
    return {"payment": payment_to_dict(payment), "booking": booking_to_dict(booking)}
