"""User service - Authentication and portal user management"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...database import transaction
from ...errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ...models import User
from ...permissions import ADMIN, ensure_admin
from ...security_utils import (
    check_password_strength,
    create_jwt_token,
    hash_password,
    log_security_event,
    verify_password,
)
from ..bookings.mapping import map_row_to_user, model_to_row
from .repository import UserRepository
from .schemas import UserCreate

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> dict:
    """Application shape of a user (no password hash)"""
    return map_row_to_user(model_to_row(user))


class UserService:
    """Service layer for authentication and user management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def authenticate(self, username: str, password: str, ip_address: Optional[str] = None) -> dict:
        """
        Check credentials and issue a signed access token.

        Unknown usernames and wrong passwords fail identically.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required", field="username")

        user = self.repo.get_user_by_username(self.db, username)
        if not verify_password(password, user.password_hash if user else None):
            log_security_event("login_failed", username=username, ip_address=ip_address)
            raise AuthenticationError()

        with transaction(self.db, "update_last_login", user.id, idempotent=True):
            self.repo.update_last_login(self.db, user)

        token = create_jwt_token({"sub": user.id, "username": user.username, "role": user.role})
        log_security_event("login_success", username=user.username, ip_address=ip_address)
        logger.info(f"🔑 {user.username} signed in")

        return {
            "token": token,
            "tokenType": "bearer",
            "expiresIn": config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": user_to_dict(user),
        }

    def list_users(self, actor: User) -> list[User]:
        ensure_admin(actor)
        return self.repo.get_users(self.db)

    def create_user(self, data: UserCreate, actor: User) -> User:
        ensure_admin(actor)

        problems = check_password_strength(data.password)
        if problems:
            raise ValidationError(problems[0], field="password")

        if self.repo.get_user_by_username(self.db, data.username):
            raise ValidationError(f"Username '{data.username}' is already taken", field="username")

        with transaction(self.db, "create_user"):
            user = self.repo.create_user(
                self.db,
                username=data.username,
                email=data.email,
                role=data.role,
                password_hash=hash_password(data.password),
            )

        logger.info(f"👤 {actor.username} created user {user.username} ({user.role})")
        return user

    def set_password(self, user_id: str, password: str, actor: User) -> User:
        """Set a user's password. Admins may set anyone's, others only their own."""
        if actor.id != user_id and actor.role != ADMIN:
            raise AuthorizationError("You can only change your own password", required_roles=(ADMIN,))

        problems = check_password_strength(password)
        if problems:
            raise ValidationError(problems[0], field="password")

        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise NotFoundError("User", user_id)

        with transaction(self.db, "set_password", user_id, idempotent=True):
            self.repo.set_password_hash(self.db, user, hash_password(password))

        log_security_event("password_changed", username=user.username, changed_by=actor.username)
        return user
