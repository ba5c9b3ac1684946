"""
Row mapping between the application shape (camelCase) and table rows (snake_case).

The tables below are the exchange format shared with the admin portal and the
booking wizard. Translation is key-for-key: keys missing from the input stay
missing from the output and values pass through untouched.
"""

from typing import Any

BOOKING_FIELDS: dict[str, str] = {
    "id": "id",
    "customerName": "customer_name",
    "contactNumber": "contact_number",
    "email": "email",
    "eventDate": "event_date",
    "eventType": "event_type",
    "venue": "venue",
    "ceremonyVenue": "ceremony_venue",
    "guestCount": "guest_count",
    "services": "services",
    "weddingSetup": "wedding_setup",
    "serviceLights": "service_lights",
    "serviceSounds": "service_sounds",
    "serviceLedWall": "service_led_wall",
    "serviceProjector": "service_projector",
    "serviceSmoke": "service_smoke",
    "hasBand": "has_band",
    "bandRider": "band_rider",
    "additionalNotes": "additional_notes",
    "totalAmount": "total_amount",
    "quoteContent": "quote_content",
    "status": "status",
    "archived": "archived",
    "archivedAt": "archived_at",
    "archivedBy": "archived_by",
    "lastEditedBy": "last_edited_by",
    "lastEditedAt": "last_edited_at",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

PAYMENT_FIELDS: dict[str, str] = {
    "id": "id",
    "bookingId": "booking_id",
    "amount": "amount",
    "paymentType": "payment_type",
    "paymentMethod": "payment_method",
    "referenceNumber": "reference_number",
    "transactionId": "transaction_id",
    "paidAt": "paid_at",
    "paidBy": "paid_by",
    "validatedBy": "validated_by",
    "notes": "notes",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

# password_hash is deliberately absent
USER_FIELDS: dict[str, str] = {
    "id": "id",
    "username": "username",
    "email": "email",
    "role": "role",
    "createdAt": "created_at",
    "lastLogin": "last_login",
}


def _translate(source: dict[str, Any], fields: dict[str, str]) -> dict[str, Any]:
    return {fields[key]: value for key, value in source.items() if key in fields}


def _invert(fields: dict[str, str]) -> dict[str, str]:
    return {column: attribute for attribute, column in fields.items()}


_BOOKING_COLUMNS = _invert(BOOKING_FIELDS)
_PAYMENT_COLUMNS = _invert(PAYMENT_FIELDS)
_USER_COLUMNS = _invert(USER_FIELDS)


def map_row_to_booking(row: dict[str, Any]) -> dict[str, Any]:
    return _translate(row, _BOOKING_COLUMNS)


def map_booking_to_row(booking: dict[str, Any]) -> dict[str, Any]:
    return _translate(booking, BOOKING_FIELDS)


def map_row_to_payment(row: dict[str, Any]) -> dict[str, Any]:
    return _translate(row, _PAYMENT_COLUMNS)


def map_payment_to_row(payment: dict[str, Any]) -> dict[str, Any]:
    return _translate(payment, PAYMENT_FIELDS)


def map_row_to_user(row: dict[str, Any]) -> dict[str, Any]:
    return _translate(row, _USER_COLUMNS)


def model_to_row(instance) -> dict[str, Any]:
    """Column values of an ORM instance, skipping columns that are NULL"""
    row = {}
    for column in instance.__table__.columns:
        value = getattr(instance, column.key)
        if value is not None:
            row[column.key] = value
    return row
