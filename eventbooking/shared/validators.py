"""Shared validation utilities"""

import re
from typing import Optional


def validate_ph_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a contact number.

    Philippine mobile numbers (09XXXXXXXXX, 639XXXXXXXXX, 9XXXXXXXXX) are stored
    in E.164 format (+639XXXXXXXXX). Other numbers of 7 to 15 digits, such as
    landlines or foreign mobiles, are stored as digits only.

    Raises:
        ValueError: If the number is not a plausible phone number
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if len(digits) == 11 and digits.startswith("09"):
        return f"+63{digits[1:]}"
    if len(digits) == 12 and digits.startswith("639"):
        return f"+{digits}"
    if len(digits) == 10 and digits.startswith("9"):
        return f"+63{digits}"

    if not 7 <= len(digits) <= 15:
        raise ValueError("Contact number must have between 7 and 15 digits")

    return digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_required_text(value: Optional[str], label: str) -> str:
    """Strip a required text field and reject it when blank"""
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    return value.strip()
