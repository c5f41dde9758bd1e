from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import DuplicateIdentity, UserNotFound
from app.core.utils import utcnow
from app.models.user import UserRole


@pytest.mark.asyncio
async def test_find_by_email_is_case_insensitive(credentials, admin_user):
    found = await credentials.find_by_email("  ADMIN@Portfolio.COM ")
    assert found is not None
    assert found.id == admin_user.id
    assert await credentials.find_by_email("nobody@portfolio.com") is None


@pytest.mark.asyncio
async def test_create_normalizes_email_and_defaults(credentials, hasher):
    user = await credentials.create(
        email=" Writer@Portfolio.com",
        password_hash=hasher.hash("Writer2024"),
        name="Writer",
    )
    assert user.id is not None
    assert user.email == "writer@portfolio.com"
    assert user.role == UserRole.USER
    assert user.is_active is True
    assert user.password_hash != "Writer2024"


@pytest.mark.asyncio
async def test_create_rejects_duplicate_email(credentials, hasher, admin_user):
    with pytest.raises(DuplicateIdentity) as exc_info:
        await credentials.create(
            email="Admin@portfolio.com",
            password_hash=hasher.hash("whatever1A"),
            name="Impostor",
        )
    assert exc_info.value.email == "admin@portfolio.com"


@pytest.mark.asyncio
async def test_update_status(credentials, regular_user):
    user = await credentials.update_status(regular_user.id, False)
    assert user.is_active is False

    user = await credentials.update_status(regular_user.id, True)
    assert user.is_active is True

    with pytest.raises(UserNotFound):
        await credentials.update_status(9999, False)


@pytest.mark.asyncio
async def test_delete(credentials, session, regular_user):
    await credentials.delete(regular_user.id)
    await session.commit()

    assert await credentials.get_by_id(regular_user.id) is None
    with pytest.raises(UserNotFound):
        await credentials.delete(regular_user.id)


@pytest.mark.asyncio
async def test_update_profile_checks_email_uniqueness(credentials, admin_user, regular_user):
    with pytest.raises(DuplicateIdentity):
        await credentials.update_profile(regular_user, email="admin@portfolio.com")

    user = await credentials.update_profile(
        regular_user, name="Guest Author", email="Guest@Portfolio.com", bio="Writes about CSS"
    )
    assert user.name == "Guest Author"
    assert user.email == "guest@portfolio.com"
    assert user.bio == "Writes about CSS"


@pytest.mark.asyncio
async def test_update_password_bumps_token_version(credentials, hasher, regular_user):
    assert regular_user.token_version == 0

    user = await credentials.update_password(regular_user, hasher.hash("Changed2024"))
    assert hasher.verify("Changed2024", user.password_hash)
    assert user.token_version == 1

    await credentials.rehash_password(user, hasher.hash("Changed2024"))
    assert user.token_version == 1


@pytest.mark.asyncio
async def test_list_users_filters_and_pages(credentials, admin_user, regular_user):
    users, total = await credentials.list_users()
    assert total == 2
    assert {u.id for u in users} == {admin_user.id, regular_user.id}

    users, total = await credentials.list_users(role=UserRole.ADMIN)
    assert total == 1
    assert users[0].id == admin_user.id

    users, total = await credentials.list_users(search="visit")
    assert total == 1
    assert users[0].email == "visitor@portfolio.com"

    users, total = await credentials.list_users(page=2, per_page=1)
    assert total == 2
    assert len(users) == 1

    await credentials.update_status(regular_user.id, False)
    users, total = await credentials.list_users(is_active=True)
    assert total == 1


@pytest.mark.asyncio
async def test_token_store_revoke_is_idempotent(tokens, session, admin_user):
    expires_at = utcnow() + timedelta(hours=1)

    assert await tokens.is_revoked("jti-1") is False
    await tokens.revoke("jti-1", admin_user.id, expires_at)
    await tokens.revoke("jti-1", admin_user.id, expires_at)
    await session.commit()

    assert await tokens.is_revoked("jti-1") is True


@pytest.mark.asyncio
async def test_token_store_purges_expired_rows(tokens, session, admin_user):
    now = utcnow()
    await tokens.revoke("old", admin_user.id, now - timedelta(hours=1))
    await tokens.revoke("live", admin_user.id, now + timedelta(hours=1))
    await session.commit()

    assert await tokens.purge_expired(now) == 1
    await session.commit()

    assert await tokens.is_revoked("old") is False
    assert await tokens.is_revoked("live") is True


@pytest.mark.asyncio
async def test_create_reports_lost_race_as_duplicate(credentials, hasher, session, admin_user, monkeypatch):
    # A concurrent insert lands between the lookup and the flush
    monkeypatch.setattr(credentials, "find_by_email", AsyncMock(return_value=None))

    with pytest.raises(DuplicateIdentity):
        await credentials.create(
            email="admin@portfolio.com",
            password_hash=hasher.hash("whatever1A"),
            name="Impostor",
        )

    await session.rollback()
    assert await credentials.get_by_id(admin_user.id) is not None


@pytest.mark.asyncio
async def test_update_profile_reports_lost_race_as_duplicate(
    credentials, session, admin_user, regular_user, monkeypatch
):
    monkeypatch.setattr(credentials, "find_by_email", AsyncMock(return_value=None))

    with pytest.raises(DuplicateIdentity) as exc_info:
        await credentials.update_profile(regular_user, email="admin@portfolio.com")
    assert exc_info.value.email == "admin@portfolio.com"

    await session.rollback()
