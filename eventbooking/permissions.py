"""Role checks for admin portal actions"""

import logging

from .errors import AuthorizationError
from .models import User

logger = logging.getLogger(__name__)

ADMIN = "admin"
STAFF = "staff"
VIEWER = "viewer"

USER_ROLES = (ADMIN, STAFF, VIEWER)

# Roles allowed to change bookings and record payments
EDITOR_ROLES = (ADMIN, STAFF)


def ensure_role(user: User, *roles: str) -> None:
    """Raise AuthorizationError unless the user holds one of the given roles"""
    if user is None or user.role not in roles:
        username = user.username if user is not None else "anonymous"
        logger.warning(f"🚫 {username} ({getattr(user, 'role', None)}) denied, requires {'/'.join(roles)}")
        raise AuthorizationError(
            f"This action requires the {' or '.join(roles)} role", required_roles=tuple(roles)
        )


def ensure_admin(user: User) -> None:
    ensure_role(user, ADMIN)


def ensure_editor(user: User) -> None:
    ensure_role(user, *EDITOR_ROLES)
