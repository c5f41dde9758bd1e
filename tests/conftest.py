import os
import sys

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.auth.jwt import TokenIssuer
from app.auth.password import PasswordHasher
from app.auth.store import CredentialStore, TokenStore
from app.auth.verifier import TokenVerifier
from app.core.config import Settings
from app.core.database import Database
from app.main import create_app
from app.models.user import UserRole

ADMIN_EMAIL = "admin@portfolio.com"
ADMIN_PASSWORD = "admin123"
USER_PASSWORD = "Visitor2024"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key="test-secret-key",
        # Cheap Argon2 parameters keep the suite fast
        password_hash_time_cost=1,
        password_hash_memory_cost=1024,
        password_hash_parallelism=1,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        trusted_hosts=["*"],
        log_level="WARNING",
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    # Context manager runs the lifespan: tables + seeded admin
    with TestClient(app) as c:
        yield c


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return PasswordHasher.from_settings(settings)


@pytest.fixture
def issuer(settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def verifier(settings) -> TokenVerifier:
    return TokenVerifier.from_settings(settings)


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.init()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_maker() as s:
        yield s


@pytest.fixture
def credentials(session) -> CredentialStore:
    return CredentialStore(session)


@pytest.fixture
def tokens(session) -> TokenStore:
    return TokenStore(session)


@pytest_asyncio.fixture
async def admin_user(credentials, hasher, session):
    user = await credentials.create(
        email=ADMIN_EMAIL,
        password_hash=hasher.hash(ADMIN_PASSWORD),
        name="Admin User",
        role=UserRole.ADMIN,
    )
    await session.commit()
    return user


@pytest_asyncio.fixture
async def regular_user(credentials, hasher, session):
    user = await credentials.create(
        email="visitor@portfolio.com",
        password_hash=hasher.hash(USER_PASSWORD),
        name="Visitor",
    )
    await session.commit()
    return user


def login(client: TestClient, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str = "visitor@portfolio.com",
             password: str = USER_PASSWORD, name: str = "Visitor"):
    return client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
