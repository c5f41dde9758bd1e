"""
Persistence for identities and revoked tokens.

Both stores work on the caller's AsyncSession: they flush so ids and
constraint violations surface immediately, and leave the commit to the
caller.
"""

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateIdentity, UserNotFound
from app.core.utils import utcnow, normalize_email, apply_search_filter
from app.models.user import User, UserRole
from app.models.session import RevokedToken


class CredentialStore:
    """Exclusive owner of User records. Never hashes passwords itself."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_or_raise(self, user_id: int) -> User:
        user = await self.get_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    async def create(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateIdentity: If the normalized email is already taken
        """
        email = normalize_email(email)
        if await self.find_by_email(email) is not None:
            raise DuplicateIdentity(email)

        user = User(
            email=email,
            password_hash=password_hash,
            name=name,
            role=role,
            is_active=is_active,
            avatar=avatar,
            bio=bio,
            token_version=0,
        )
        self.session.add(user)
        await self._flush_unique(email)
        return user

    async def update_status(self, user_id: int, active: bool) -> User:
        user = await self.get_or_raise(user_id)
        user.is_active = active
        await self.session.flush()
        return user

    async def delete(self, user_id: int) -> None:
        user = await self.get_or_raise(user_id)
        await self.session.delete(user)
        await self.session.flush()

    async def update_password(self, user: User, password_hash: str) -> User:
        """Store a new digest and retire every token issued so far."""
        user.password_hash = password_hash
        user.token_version = (user.token_version or 0) + 1
        await self.session.flush()
        return user

    async def rehash_password(self, user: User, password_hash: str) -> User:
        """Swap the digest for one with current cost parameters; sessions stay valid."""
        user.password_hash = password_hash
        await self.session.flush()
        return user

    async def update_profile(
        self,
        user: User,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """
        Update display fields.

        Raises:
            DuplicateIdentity: If the new email belongs to another user
        """
        if email is not None:
            email = normalize_email(email)
            if email != user.email:
                existing = await self.find_by_email(email)
                if existing is not None and existing.id != user.id:
                    raise DuplicateIdentity(email)
                user.email = email
        if name is not None:
            user.name = name
        if avatar is not None:
            user.avatar = avatar
        if bio is not None:
            user.bio = bio
        await self._flush_unique(user.email)
        return user

    async def _flush_unique(self, email: str) -> None:
        """
        Flush pending changes, reporting a lost race on the unique email
        index as DuplicateIdentity. The transaction is left for the caller
        to roll back.
        """
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateIdentity(email) from e

    async def record_login(self, user: User) -> None:
        user.last_login = utcnow()
        await self.session.flush()

    async def list_users(
        self,
        page: int = 1,
        per_page: int = 20,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> tuple[Sequence[User], int]:
        """Return one page of users (newest first) and the total match count."""
        query = select(User)
        count_query = select(func.count(User.id))

        if role:
            query = query.where(User.role == role)
            count_query = count_query.where(User.role == role)

        if is_active is not None:
            query = query.where(User.is_active == is_active)
            count_query = count_query.where(User.is_active == is_active)

        query, count_query = apply_search_filter(
            query, count_query, search, User.email, User.name
        )

        result = await self.session.execute(count_query)
        total = result.scalar_one()

        offset = (page - 1) * per_page
        query = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(per_page)
        result = await self.session.execute(query)
        return result.scalars().all(), total


class TokenStore:
    """Revocation list for issued tokens, keyed by jti."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def revoke(self, jti: str, user_id: int, expires_at: datetime) -> None:
        """Revoke a token id. Revoking twice is a no-op."""
        if await self.session.get(RevokedToken, jti) is not None:
            return
        self.session.add(RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at))
        await self.session.flush()

    async def is_revoked(self, jti: str) -> bool:
        result = await self.session.execute(
            select(RevokedToken.jti).where(RevokedToken.jti == jti)
        )
        return result.scalar_one_or_none() is not None

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop rows for tokens that would be rejected as expired anyway."""
        result = await self.session.execute(
            delete(RevokedToken)
            .where(RevokedToken.expires_at < (now or utcnow()))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
