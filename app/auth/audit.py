"""
Audit logging helper functions.

Centralizes audit log creation to reduce code duplication across endpoints.
"""

from typing import Optional, Dict, Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.models.audit import AuditLog, AuditAction
from app.auth.dependencies import get_client_ip, get_user_agent, get_request_id


def create_audit_log(
    request: Request,
    action: AuditAction,
    user: Optional[User] = None,
    user_email: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    success: bool = True,
) -> AuditLog:
    """
    Create an audit log entry.

    The caller is responsible for adding it to the session and committing.

    Args:
        request: FastAPI Request object (for IP, user agent and request id)
        action: The audit action type
        user: The user performing the action, if known
        user_email: Email to record when there is no user (failed logins)
        resource_type: Type of resource (e.g., "user")
        resource_id: Identifier of the resource
        details: Optional dictionary of additional details
        success: Outcome of the action

    Example:
        audit = create_audit_log(
            request=request,
            action=AuditAction.USER_STATUS_CHANGED,
            user=identity.user,
            resource_type="user",
            resource_id=target.id,
            details={"is_active": False},
        )
        db.add(audit)
    """
    return AuditLog.create(
        action=action,
        user_id=user.id if user is not None else None,
        user_email=user.email if user is not None else user_email,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        success=success,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        request_id=get_request_id(request),
    )


def log_action(
    db: AsyncSession,
    request: Request,
    action: AuditAction,
    user: Optional[User] = None,
    **kwargs: Any,
) -> AuditLog:
    """
    Create and add an audit log entry to the session.
    The caller should commit the session.
    """
    audit = create_audit_log(request=request, action=action, user=user, **kwargs)
    db.add(audit)
    return audit
