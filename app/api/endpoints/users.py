"""
User management endpoints.

Admin only. Mounted under /auth/users to match the admin panel's client.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import InvalidOperation
from app.models.audit import AuditAction
from app.models.user import UserRole
from app.auth.audit import log_action
from app.auth.dependencies import get_credential_store, require_admin
from app.auth.store import CredentialStore
from app.auth.verifier import AuthenticatedIdentity
from app.schemas.common import PaginatedResponse, SuccessResponse
from app.schemas.user import UserEnvelope, UserResponse, UserStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100, alias="perPage"),
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None, max_length=200),
    identity: AuthenticatedIdentity = Depends(require_admin),
    store: CredentialStore = Depends(get_credential_store),
):
    """List users with pagination and filtering."""
    users, total = await store.list_users(
        page=page,
        per_page=per_page,
        role=role,
        is_active=is_active,
        search=search,
    )
    return PaginatedResponse.create(
        items=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.put("/{user_id}/status", response_model=UserEnvelope)
async def update_user_status(
    request: Request,
    user_id: int,
    status_data: UserStatusUpdate,
    identity: AuthenticatedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Enable or disable an account.

    Disabling takes effect on the user's very next request.
    """
    if user_id == identity.user_id and not status_data.is_active:
        raise InvalidOperation("Cannot deactivate your own account")

    user = await store.update_status(user_id, status_data.is_active)

    log_action(
        db, request, AuditAction.USER_STATUS_CHANGED,
        user=identity.user,
        resource_type="user",
        resource_id=user.id,
        details={"is_active": user.is_active, "email": user.email},
    )
    await db.commit()
    logger.info(
        "%s set is_active=%s on user %s", identity.user.email, user.is_active, user.email
    )

    return UserEnvelope(user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    request: Request,
    user_id: int,
    identity: AuthenticatedIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: CredentialStore = Depends(get_credential_store),
):
    """Permanently delete a user. Their revoked-token rows go with them."""
    if user_id == identity.user_id:
        raise InvalidOperation("Cannot delete your own account")

    await store.delete(user_id)

    log_action(
        db, request, AuditAction.USER_DELETED,
        user=identity.user,
        resource_type="user",
        resource_id=user_id,
    )
    await db.commit()
    logger.info("%s deleted user %s", identity.user.email, user_id)

    return SuccessResponse(message="User deleted successfully")
