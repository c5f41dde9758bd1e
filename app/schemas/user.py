"""
User-related schemas.
"""

from typing import Optional
from datetime import datetime
from pydantic import ConfigDict, Field, EmailStr, field_validator
from pydantic.alias_generators import to_camel
import re

from app.models.user import UserRole
from app.schemas.common import CamelModel


def sanitize_name(v: str) -> str:
    # Remove potentially dangerous characters
    v = re.sub(r'[<>"\';\\]', '', v)
    return v.strip()


class UserResponse(CamelModel):
    """Schema for user response (no sensitive data)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    avatar: Optional[str] = None
    bio: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserEnvelope(CamelModel):
    """{success, user} wrapper used by /me, profile and status updates."""

    success: bool = True
    user: UserResponse


class ProfileUpdateRequest(CamelModel):
    """Fields a user may change on their own account."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = Field(default=None, max_length=500)
    bio: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return sanitize_name(v)


class UserStatusUpdate(CamelModel):
    """Admin request to enable or disable an account."""

    is_active: bool
