"""
Security utilities: password hashing, access tokens and the security audit log
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from . import config

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.PASSWORD_HASH_ROUNDS
)

# Verified against when the username does not exist so both failures take as long
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        pwd_context.verify(plain_password, _DUMMY_HASH)
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        # Malformed or unknown hash format stored for this user
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> list[str]:
    """Return the problems with a new password, empty when acceptable"""
    problems = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters long")
    if password.lower() in ("password", "12345678", "qwertyui", "admin123", "letmein1"):
        problems.append("This is a commonly used password - choose something unique")
    return problems


# ============================================================================
# ACCESS TOKENS
# ============================================================================


def create_jwt_token(claims: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign an HS256 access token carrying claims, valid for ACCESS_TOKEN_EXPIRE_MINUTES by default"""
    issued_at = datetime.utcnow()
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {**claims, "iat": issued_at, "exp": issued_at + lifetime}
    return jose_jwt.encode(payload, config.SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """Claims of a valid token; None when the signature is bad or the token expired"""
    try:
        return jose_jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"🔒 Rejected access token: {e}")
        return None


# ============================================================================
# AUDIT LOG
# ============================================================================


def log_security_event(
    event_type: str,
    username: Optional[str] = None,
    ip_address: Optional[str] = None,
    **details: Any,
) -> None:
    """
    Write one audit line for a portal security event.

    event_type is one of login_success, login_failed or password_changed.
    Extra keyword arguments are recorded as event details.
    """
    entry = {
        "at": datetime.utcnow().isoformat(timespec="seconds"),
        "event": event_type,
        "username": username,
        "ip": ip_address,
    }
    if details:
        entry["details"] = details
    logger.info(f"SECURITY_EVENT: {entry}")
