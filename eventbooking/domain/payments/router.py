"""Payment router - FastAPI endpoints for payment records"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import PaymentCreate, PaymentResponse, PaymentStatsResponse
from .service import PaymentService, payment_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.get("", response_model=list[PaymentResponse])
def get_payments(
    bookingId: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """List payments, most recent first, optionally for one booking"""
    return [payment_to_dict(p) for p in service.list_payments(bookingId)]


@router.get("/stats", response_model=PaymentStatsResponse)
def get_payment_stats(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_payment_stats()


@router.post("", response_model=PaymentResponse, status_code=201)
def create_payment(
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Record a payment against a booking"""
    return payment_to_dict(service.create_payment(data, current_user))


@router.delete("/{payment_id}")
def delete_payment(
    payment_id: str,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Remove a payment (refund or data-entry correction)"""
    booking_id = service.delete_payment(payment_id, current_user)
    return {"message": "Payment removed", "deleted": True, "bookingId": booking_id}
