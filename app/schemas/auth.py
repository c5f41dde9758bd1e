"""
Authentication-related schemas.
"""

from datetime import datetime
from pydantic import Field, EmailStr, field_validator

from app.auth.password import validate_password_strength
from app.schemas.common import CamelModel
from app.schemas.user import UserResponse, sanitize_name


def check_password_strength(v: str) -> str:
    """Ensure password meets complexity requirements."""
    ok, issues = validate_password_strength(v)
    if not ok:
        raise ValueError("; ".join(issues))
    return v


class LoginRequest(CamelModel):
    """Login request with email and password."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()


class RegisterRequest(CamelModel):
    """Self-service registration."""

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        return sanitize_name(v)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class LoginResponse(CamelModel):
    """Login/registration response with the bearer token."""

    success: bool = True
    token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(description="Token expiry (UTC)")
    user: UserResponse


class PasswordChangeRequest(CamelModel):
    """Request to change password."""

    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class PasswordChangeResponse(CamelModel):
    """Password changed; previous tokens no longer verify."""

    success: bool = True
    message: str = "Password changed successfully"
    token: str
    expires_at: datetime
