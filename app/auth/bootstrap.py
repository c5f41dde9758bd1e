"""
Default admin account.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.password import PasswordHasher
from app.auth.store import CredentialStore
from app.core.config import Settings
from app.models.audit import AuditLog, AuditAction
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def ensure_admin_user(
    session: AsyncSession,
    settings: Settings,
    hasher: PasswordHasher,
) -> Optional[User]:
    """
    Create the configured admin account if it does not exist yet.

    Returns the existing or new admin, or None when no password is available
    (production without ADMIN_PASSWORD). Commits on creation.
    """
    store = CredentialStore(session)

    existing = await store.find_by_email(settings.admin_email)
    if existing is not None:
        return existing

    password = settings.effective_admin_password
    if password is None:
        logger.warning(
            "No admin account for %s and ADMIN_PASSWORD is not set; skipping admin seeding",
            settings.admin_email,
        )
        return None

    admin = await store.create(
        email=settings.admin_email,
        password_hash=await hasher.hash_async(password),
        name=settings.admin_name,
        role=UserRole.ADMIN,
    )
    session.add(AuditLog.create(
        action=AuditAction.ADMIN_SEEDED,
        user_id=admin.id,
        user_email=admin.email,
        resource_type="user",
        resource_id=admin.id,
    ))
    await session.commit()

    logger.info("Created admin account %s", admin.email)
    if not settings.admin_password:
        logger.warning("Admin account uses the development default password; change it")
    return admin
