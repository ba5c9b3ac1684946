import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# v1: bookings, payments, users as first deployed
# v2: quote_content, archive and last-edited audit columns on bookings
# v3: one payment per reference number per booking, case-insensitive
SCHEMA_VERSION = 3


def generate_uuid():
    """Generate a surrogate key for payments and users"""
    return str(uuid.uuid4())


class SchemaInfo(Base):
    """Applied schema version, checked on startup"""

    __tablename__ = "schema_info"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(Integer, nullable=False)
    applied_at = Column(DateTime, server_default=func.now())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="staff")  # admin, staff, viewer
    password_hash = Column(String(255), nullable=False)  # bcrypt
    created_at = Column(DateTime, server_default=func.now())
    last_login = Column(DateTime, nullable=True)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(20), primary_key=True)  # BA-<year>-####

    # Customer
    customer_name = Column(String(255), nullable=False)
    contact_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=False, index=True)

    # Event
    event_date = Column(Date, nullable=False, index=True)
    event_type = Column(String(100), nullable=False)
    venue = Column(String(500), nullable=False)
    ceremony_venue = Column(String(500), nullable=True)  # Weddings only
    guest_count = Column(Integer, default=0)
    wedding_setup = Column(String(100), nullable=True)

    # Requested services
    services = Column(JSON, default=list)  # e.g. ["Lights", "Sounds", "LED Wall"]
    service_lights = Column(Boolean, nullable=True)
    service_sounds = Column(Boolean, nullable=True)
    service_led_wall = Column(Boolean, nullable=True)
    service_projector = Column(Boolean, nullable=True)
    service_smoke = Column(Boolean, nullable=True)
    has_band = Column(Boolean, nullable=True)
    band_rider = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)

    # Commercial terms, set by admin
    total_amount = Column(Float, nullable=True)
    quote_content = Column(Text, nullable=True)

    # Lifecycle
    status = Column(String(20), nullable=False, default="Inquiry", index=True)
    archived = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime, nullable=True)
    archived_by = Column(String(64), nullable=True)  # username, not a foreign key
    last_edited_by = Column(String(64), nullable=True)
    last_edited_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    payments = relationship("Payment", back_populates="booking", cascade="all, delete-orphan")


class Payment(Base):
    """One recorded payment against a booking"""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    booking_id = Column(
        String(20), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Float, nullable=False)
    payment_type = Column(String(20), nullable=False)  # reservation, downpayment, partial, full
    payment_method = Column(String(50), nullable=False)  # gcash, maya, bank_transfer, cash, check
    reference_number = Column(String(100), nullable=True, index=True)
    transaction_id = Column(String(100), nullable=True)
    paid_at = Column(DateTime, nullable=False, server_default=func.now())
    paid_by = Column(String(255), nullable=True)
    validated_by = Column(String(64), nullable=True)  # username
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="payments")


# NULL reference numbers (cash, directly added payments) are not constrained
Index(
    "uq_payments_booking_reference",
    Payment.booking_id,
    func.lower(Payment.reference_number),
    unique=True,
)
