"""
Authentication endpoints.

Provides:
- Login (email/password → JWT)
- Registration
- Current user profile (read/update)
- Logout (revokes the presented token)
- Password change
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.database import get_db
from app.core.exceptions import (
    AccountDisabled,
    Forbidden,
    InvalidCredentials,
    InvalidOperation,
)
from app.models.audit import AuditAction
from app.models.user import UserRole
from app.auth.audit import log_action
from app.auth.dependencies import (
    get_credential_store,
    get_current_identity,
    get_optional_identity,
    get_password_hasher,
    get_settings,
    get_token_issuer,
    get_token_store,
)
from app.auth.jwt import TokenIssuer
from app.auth.password import PasswordHasher
from app.auth.store import CredentialStore, TokenStore
from app.auth.verifier import AuthenticatedIdentity
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    PasswordChangeRequest,
    PasswordChangeResponse,
)
from app.schemas.common import SuccessResponse
from app.schemas.user import UserEnvelope, UserResponse, ProfileUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Authenticate user and return a bearer token.

    Unknown email and wrong password produce the same response.
    """
    user = await store.find_by_email(login_data.email)

    if user is None:
        await hasher.dummy_verify_async(login_data.password)
        log_action(
            db, request, AuditAction.LOGIN_FAILURE,
            user_email=login_data.email,
            details={"reason": "unknown_email"},
            success=False,
        )
        await db.commit()
        logger.info("Login failed for %s", login_data.email)
        raise InvalidCredentials()

    if not await hasher.verify_async(login_data.password, user.password_hash):
        log_action(
            db, request, AuditAction.LOGIN_FAILURE,
            user=user,
            details={"reason": "invalid_password"},
            success=False,
        )
        await db.commit()
        logger.info("Login failed for %s", login_data.email)
        raise InvalidCredentials()

    if not user.is_active:
        log_action(
            db, request, AuditAction.LOGIN_FAILURE,
            user=user,
            details={"reason": "account_disabled"},
            success=False,
        )
        await db.commit()
        raise AccountDisabled()

    # Security parameter upgrade
    if hasher.needs_rehash(user.password_hash):
        await store.rehash_password(user, await hasher.hash_async(login_data.password))

    await store.record_login(user)
    token = issuer.issue(user)

    log_action(db, request, AuditAction.LOGIN_SUCCESS, user=user)
    await db.commit()
    logger.info("User %s logged in", user.email)

    return LoginResponse(
        token=token.value,
        expires_at=token.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Create a regular user account and log it in."""
    if not settings.allow_registration:
        raise Forbidden("Registration is disabled")

    user = await store.create(
        email=register_data.email,
        password_hash=await hasher.hash_async(register_data.password),
        name=register_data.name,
        role=UserRole.USER,
    )
    await store.record_login(user)
    token = issuer.issue(user)

    log_action(
        db, request, AuditAction.USER_REGISTERED,
        user=user,
        resource_type="user",
        resource_id=user.id,
    )
    await db.commit()
    logger.info("Registered user %s", user.email)

    return LoginResponse(
        token=token.value,
        expires_at=token.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserEnvelope)
async def get_current_user_info(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
):
    """Get current user's profile information."""
    return UserEnvelope(user=UserResponse.model_validate(identity.user))


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    request: Request,
    profile_data: ProfileUpdateRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
):
    """Update the current user's display name, email, avatar or bio."""
    changes = profile_data.model_dump(exclude_none=True)
    user = await store.update_profile(identity.user, **changes)

    log_action(
        db, request, AuditAction.PROFILE_UPDATED,
        user=user,
        resource_type="user",
        resource_id=user.id,
        details={"fields": sorted(changes)},
    )
    await db.commit()

    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put("/change-password", response_model=PasswordChangeResponse)
async def change_password(
    request: Request,
    password_data: PasswordChangeRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """
    Change the current user's password.

    Bumps the token version, so every token issued before the change
    (on any device) stops verifying; the response carries a fresh one.
    """
    user = identity.user

    if not await hasher.verify_async(password_data.current_password, user.password_hash):
        raise InvalidOperation("Current password is incorrect")

    await store.update_password(user, await hasher.hash_async(password_data.new_password))
    token = issuer.issue(user)

    log_action(db, request, AuditAction.PASSWORD_CHANGE, user=user)
    await db.commit()
    logger.info("Password changed for %s", user.email)

    return PasswordChangeResponse(token=token.value, expires_at=token.expires_at)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    identity: Optional[AuthenticatedIdentity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
    tokens: TokenStore = Depends(get_token_store),
):
    """
    Log out.

    A valid presented token is revoked server-side. The client should
    discard its copy either way.
    """
    if identity is not None:
        await tokens.revoke(identity.token.jti, identity.user_id, identity.token.exp)
        log_action(db, request, AuditAction.LOGOUT, user=identity.user)
        await db.commit()
        logger.info("User %s logged out", identity.user.email)

    return SuccessResponse(message="Logged out successfully")
