"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...errors import ValidationError
from ...models import User
from .schemas import BookingCreate, BookingResponse, BookingUpdate, PaymentSummaryResponse
from .service import BookingService, booking_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def parse_archived_filter(archived: str) -> Optional[bool]:
    """'false' (default) active only, 'true' archived only, 'all' both"""
    value = archived.strip().lower()
    if value == "all":
        return None
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    raise ValidationError("archived must be true, false or all", field="archived")


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
def create_booking(data: BookingCreate, service: BookingService = Depends(get_booking_service)):
    """Submit a booking inquiry from the booking wizard"""
    return booking_to_dict(service.create_booking(data))


# ============================================================================
# ADMIN PORTAL
# ============================================================================


@router.get("", response_model=list[BookingResponse])
def get_bookings(
    status: Optional[str] = Query(None),
    archived: str = Query("false"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """List bookings, newest first"""
    bookings = service.list_bookings(
        status=status, archived=parse_archived_filter(archived), search=search
    )
    return [booking_to_dict(b) for b in bookings]


@router.get("/schedule", response_model=list[BookingResponse])
def get_schedule(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Events in a calendar month (excludes archived and cancelled)"""
    return [booking_to_dict(b) for b in service.get_schedule(year, month)]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_dict(service.get_booking(booking_id))


@router.patch("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: str,
    data: BookingUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_dict(service.update_booking(booking_id, data, current_user))


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return booking_to_dict(service.cancel_booking(booking_id, current_user))


@router.post("/{booking_id}/archive", response_model=BookingResponse)
def archive_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Archive a booking (admin only)"""
    return booking_to_dict(service.archive_booking(booking_id, current_user))


@router.post("/{booking_id}/restore", response_model=BookingResponse)
def restore_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Restore an archived booking (admin only)"""
    return booking_to_dict(service.restore_booking(booking_id, current_user))


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Permanently delete a booking and its payments (admin only)"""
    deleted = service.delete_booking(booking_id, current_user)
    return {"message": "Booking deleted", "deleted": deleted, "id": booking_id}


@router.get("/{booking_id}/payment-summary", response_model=PaymentSummaryResponse)
def get_payment_summary(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Paid and remaining figures with downpayment and final payment deadlines"""
    return service.get_payment_summary(booking_id)
