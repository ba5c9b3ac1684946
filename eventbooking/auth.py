import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .domain.users.repository import UserRepository
from .errors import AuthenticationError
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the signed-in user from the bearer access token"""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = verify_jwt_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")

    user = UserRepository.get_user_by_id(db, payload["sub"])
    if not user:
        logger.warning(f"⚠️ Token for unknown user {payload['sub']}")
        raise AuthenticationError("Invalid or expired token")

    return user
