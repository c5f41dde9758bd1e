"""
Authentication and Authorization module.

Provides:
- Credential and revoked-token stores
- Password hashing (Argon2id)
- JWT token issuance and verification
- The access guard and its FastAPI dependencies
- Audit logging for auth events
"""

from app.auth.jwt import (
    TokenIssuer,
    IssuedToken,
    TokenPayload,
    decode_token,
)
from app.auth.verifier import (
    TokenVerifier,
    AuthenticatedIdentity,
)
from app.auth.guard import (
    AccessGuard,
    AccessDecision,
    AccessState,
    extract_bearer_token,
)
from app.auth.dependencies import (
    RoleChecker,
    get_current_identity,
    get_optional_identity,
    require_admin,
    require_role,
)
from app.auth.password import (
    PasswordHasher,
    validate_password_strength,
    generate_temp_password,
)
from app.auth.store import (
    CredentialStore,
    TokenStore,
)

__all__ = [
    # JWT
    "TokenIssuer",
    "IssuedToken",
    "TokenPayload",
    "decode_token",
    # Verification
    "TokenVerifier",
    "AuthenticatedIdentity",
    # Guard
    "AccessGuard",
    "AccessDecision",
    "AccessState",
    "extract_bearer_token",
    # Dependencies
    "RoleChecker",
    "get_current_identity",
    "get_optional_identity",
    "require_admin",
    "require_role",
    # Password
    "PasswordHasher",
    "validate_password_strength",
    "generate_temp_password",
    # Stores
    "CredentialStore",
    "TokenStore",
]
