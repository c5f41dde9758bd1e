"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Input validation with security constraints
- Output serialization (camelCase for the web client)
- OpenAPI documentation generation
"""

from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    PasswordChangeRequest,
    PasswordChangeResponse,
)
from app.schemas.user import (
    UserResponse,
    UserEnvelope,
    ProfileUpdateRequest,
    UserStatusUpdate,
)
from app.schemas.common import (
    CamelModel,
    PaginatedResponse,
    SuccessResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "PasswordChangeRequest",
    "PasswordChangeResponse",
    # User
    "UserResponse",
    "UserEnvelope",
    "ProfileUpdateRequest",
    "UserStatusUpdate",
    # Common
    "CamelModel",
    "PaginatedResponse",
    "SuccessResponse",
    "ErrorResponse",
    "HealthResponse",
]
