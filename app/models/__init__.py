"""
Database models.

This module exports all SQLAlchemy models for the application.
"""

from app.models.user import User, UserRole
from app.models.session import RevokedToken
from app.models.audit import AuditLog, AuditAction

__all__ = [
    # User models
    "User",
    "UserRole",
    # Session models
    "RevokedToken",
    # Audit models
    "AuditLog",
    "AuditAction",
]
