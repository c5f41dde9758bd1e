"""
Audit logging model for authentication events.

Every login, logout and account change is logged for:
- Security monitoring
- Forensic investigation
"""

import json
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Optional
from sqlalchemy import String, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AuditAction(str, PyEnum):
    """Categories of auditable actions."""
    # Authentication
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"

    # Account lifecycle
    USER_REGISTERED = "user_registered"
    PROFILE_UPDATED = "profile_updated"
    USER_STATUS_CHANGED = "user_status_changed"
    USER_DELETED = "user_deleted"
    ADMIN_SEEDED = "admin_seeded"


class AuditLog(Base):
    """
    Immutable audit log entry.

    Security considerations:
    - Records are append-only (no updates/deletes in normal operation)
    - IP address and user agent captured for forensics
    - Timestamps are UTC
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)

    # When
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    # Who (null for failed auth against an unknown email)
    user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    user_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)  # Preserved even if user deleted

    # What
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False, index=True)

    # Resource affected
    resource_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Details (JSON for flexibility)
    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Outcome
    success: Mapped[bool] = mapped_column(default=True)

    # Context for forensics
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    request_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action.value} by {self.user_email} at {self.timestamp}>"

    @classmethod
    def create(
        cls,
        action: AuditAction,
        user_id: Optional[int] = None,
        user_email: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None,
        success: bool = True,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "AuditLog":
        """Factory method to create audit log entries."""
        return cls(
            action=action,
            user_id=user_id,
            user_email=user_email,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=json.dumps(details) if details else None,
            success=success,
            ip_address=ip_address,
            user_agent=user_agent,
            request_id=request_id,
        )
