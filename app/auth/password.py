"""
Password hashing with Argon2id.

Argon2id is the recommended password hashing algorithm because:
- Memory-hard (resists GPU/ASIC attacks)
- Side-channel resistant (id variant)
- Winner of the Password Hashing Competition

Cost parameters come from configuration and are the same for every hash the
application produces; callers cannot pick their own.
"""

import secrets
import string

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import VerificationError, InvalidHashError
from fastapi.concurrency import run_in_threadpool

from app.core.config import Settings

MIN_PASSWORD_LENGTH = 8


class PasswordHasher:
    """One-way salted hashing and verification."""

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
        hash_len: int = 32,
        salt_len: int = 16,
    ):
        self._ph = Argon2Hasher(
            time_cost=time_cost,        # Number of iterations
            memory_cost=memory_cost,    # KiB of memory per hash
            parallelism=parallelism,    # Number of parallel threads
            hash_len=hash_len,          # Length of the hash in bytes
            salt_len=salt_len,          # Length of the random salt
        )
        self._dummy_hash: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            time_cost=settings.password_hash_time_cost,
            memory_cost=settings.password_hash_memory_cost,
            parallelism=settings.password_hash_parallelism,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Returns:
            The encoded hash (includes algorithm, params, salt, and hash)
        """
        return self._ph.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        argon2 compares digests in constant time. A malformed hash is
        treated as a verification failure.
        """
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """
        Check if a hash was produced with different cost parameters.

        After a successful login, check this and rehash if needed.
        """
        try:
            return self._ph.check_needs_rehash(password_hash)
        except InvalidHashError:
            return True

    def dummy_verify(self, password: str) -> bool:
        """
        Spend one verification on a throwaway hash.

        Used when no user matches the email so both login failures take
        the same time. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._ph.hash(secrets.token_urlsafe(16))
        self.verify(password, self._dummy_hash)
        return False

    # Argon2 is CPU and memory bound; request handlers use these so the
    # event loop keeps serving other requests while a hash is computed.

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)

    async def dummy_verify_async(self, password: str) -> bool:
        return await run_in_threadpool(self.dummy_verify, password)


def generate_temp_password(length: int = 16) -> str:
    """
    Generate a secure temporary password.

    The result always satisfies validate_password_strength.
    """
    if length < 12:
        length = 12

    # Ensure at least one of each required character type
    password = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice("!@#$%^&*"),
    ]

    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    password.extend(secrets.choice(alphabet) for _ in range(length - 4))

    # Shuffle to avoid predictable positions
    secrets.SystemRandom().shuffle(password)

    return "".join(password)


def validate_password_strength(password: str) -> tuple[bool, list[str]]:
    """
    Validate password meets minimum security requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = []

    if len(password) < MIN_PASSWORD_LENGTH:
        issues.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if not any(c.isupper() for c in password):
        issues.append("Password must contain at least one uppercase letter")

    if not any(c.islower() for c in password):
        issues.append("Password must contain at least one lowercase letter")

    if not any(c.isdigit() for c in password):
        issues.append("Password must contain at least one digit")

    return len(issues) == 0, issues
