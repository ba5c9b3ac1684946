"""User domain schemas - Pydantic models for login and user management"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...permissions import USER_ROLES
from ...shared.validators import validate_email


class LoginRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    """Schema for user response; never carries the password hash"""

    id: str
    username: str
    email: str
    role: str
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    tokenType: str = "bearer"
    expiresIn: int
    user: UserResponse


class UserCreate(BaseModel):
    """Schema for creating a portal user (admin only)"""

    username: str
    email: str
    password: str
    role: str = "staff"

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v not in USER_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(USER_ROLES)}")
        return v


class PasswordUpdate(BaseModel):
    password: str
