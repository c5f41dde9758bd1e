"""
Application settings.

All values come from environment variables (optionally loaded from a .env
file by the app factory). Settings are built once per application and passed
explicitly to the components that need them.
"""

import logging
import os
import secrets
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
]

# Only used outside production so the seeded admin can log in out of the box
DEV_ADMIN_PASSWORD = "admin123"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    """Runtime configuration for the authentication service."""

    environment: str = "development"

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"
    sql_debug: bool = False

    # Tokens
    jwt_secret_key: str = Field(min_length=1)
    jwt_previous_secret_keys: List[str] = Field(default_factory=list)
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    token_issuer: str = "portfolio-api"
    token_audience: str = "portfolio-client"

    # Argon2id cost, fixed application-wide
    password_hash_time_cost: int = Field(default=3, ge=1)
    password_hash_memory_cost: int = Field(default=65536, ge=8)
    password_hash_parallelism: int = Field(default=4, ge=1)

    # Upper bound for store lookups done while verifying a token
    credential_lookup_timeout_seconds: float = Field(default=5.0, gt=0)

    allow_registration: bool = True

    # Default admin account
    seed_admin: bool = True
    admin_email: str = "admin@portfolio.com"
    admin_name: str = "Admin User"
    admin_password: Optional[str] = None

    # HTTP
    cors_allow_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    trusted_hosts: List[str] = Field(default_factory=lambda: ["*"])
    enable_docs: bool = True
    log_level: str = "INFO"

    @field_validator("access_token_expire_minutes")
    @classmethod
    def positive_expiry(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("access token lifetime must be positive")
        return v

    @field_validator("admin_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def verification_keys(self) -> List[str]:
        """Current signing key first, then keys still accepted after a rotation."""
        return [self.jwt_secret_key] + [
            key for key in self.jwt_previous_secret_keys if key != self.jwt_secret_key
        ]

    @property
    def effective_admin_password(self) -> Optional[str]:
        if self.admin_password:
            return self.admin_password
        if self.is_production:
            return None
        return DEV_ADMIN_PASSWORD

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Raises:
            ConfigurationError: If production mode is missing required secrets
                or a value cannot be parsed.
        """
        environment = os.getenv("APP_ENV", "development")

        secret = os.getenv("JWT_SECRET_KEY")
        if not secret:
            if environment.lower() == "production":
                raise ConfigurationError("JWT_SECRET_KEY must be set in production")
            secret = secrets.token_urlsafe(32)
            logger.warning(
                "JWT_SECRET_KEY is not set; using a random per-process key. "
                "Tokens will not survive a restart."
            )

        try:
            return cls(
                environment=environment,
                database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./portfolio.db"),
                sql_debug=_env_bool("SQL_DEBUG", False),
                jwt_secret_key=secret,
                jwt_previous_secret_keys=_env_list("JWT_PREVIOUS_SECRET_KEYS", []),
                jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
                access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")),
                token_issuer=os.getenv("TOKEN_ISSUER", "portfolio-api"),
                token_audience=os.getenv("TOKEN_AUDIENCE", "portfolio-client"),
                password_hash_time_cost=int(os.getenv("PASSWORD_HASH_TIME_COST", "3")),
                password_hash_memory_cost=int(os.getenv("PASSWORD_HASH_MEMORY_COST", "65536")),
                password_hash_parallelism=int(os.getenv("PASSWORD_HASH_PARALLELISM", "4")),
                credential_lookup_timeout_seconds=float(
                    os.getenv("CREDENTIAL_LOOKUP_TIMEOUT_SECONDS", "5")
                ),
                allow_registration=_env_bool("ALLOW_REGISTRATION", True),
                seed_admin=_env_bool("SEED_ADMIN", True),
                admin_email=os.getenv("ADMIN_EMAIL", "admin@portfolio.com"),
                admin_name=os.getenv("ADMIN_NAME", "Admin User"),
                admin_password=os.getenv("ADMIN_PASSWORD") or None,
                cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS", DEFAULT_CORS_ORIGINS),
                trusted_hosts=_env_list("TRUSTED_HOSTS", ["*"]),
                enable_docs=_env_bool("ENABLE_DOCS", True),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError subclass
            raise ConfigurationError(f"Invalid configuration: {e}") from e
