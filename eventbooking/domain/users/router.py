"""User router - login and portal user management endpoints"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter, get_client_ip
from .schemas import LoginRequest, LoginResponse, PasswordUpdate, UserCreate, UserResponse
from .service import UserService, user_to_dict

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
router = APIRouter(prefix="/users", tags=["Users"])

rate_limit_login = create_rate_limiter(
    limit=config.LOGIN_RATE_LIMIT, window_seconds=config.LOGIN_RATE_WINDOW, key_prefix="login"
)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@auth_router.post("/login", response_model=LoginResponse)
def login(
    data: LoginRequest,
    request: Request,
    _: None = Depends(rate_limit_login),
    service: UserService = Depends(get_user_service),
):
    """Exchange username and password for an access token"""
    return service.authenticate(data.username, data.password, ip_address=get_client_ip(request))


@auth_router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return user_to_dict(current_user)


@router.get("", response_model=list[UserResponse])
def get_users(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """List portal users (admin only)"""
    return [user_to_dict(u) for u in service.list_users(current_user)]


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return user_to_dict(service.create_user(data, current_user))


@router.put("/{user_id}/password")
def set_password(
    user_id: str,
    data: PasswordUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Set a password (admin for anyone, any user for themselves)"""
    service.set_password(user_id, data.password, current_user)
    return {"message": "Password updated"}
