import asyncio
import os
import sys

import pytest

# Add scripts directory to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'scripts')))

import create_admin
from app.auth.password import PasswordHasher
from app.auth.store import CredentialStore
from app.core.database import Database
from app.models.user import UserRole


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("JWT_SECRET_KEY", "cli-secret")
    monkeypatch.setenv("PASSWORD_HASH_TIME_COST", "1")
    monkeypatch.setenv("PASSWORD_HASH_MEMORY_COST", "1024")
    monkeypatch.setenv("PASSWORD_HASH_PARALLELISM", "1")
    return url


def run_cli(monkeypatch, *args) -> int:
    monkeypatch.setattr(sys, "argv", ["create_admin.py", *args])
    return create_admin.main()


async def find_user(url: str, email: str):
    database = Database(url)
    try:
        await database.init()
        async with database.session_maker() as session:
            return await CredentialStore(session).find_by_email(email)
    finally:
        await database.close()


def test_generated_password_is_printed_and_usable(database_url, monkeypatch, capsys):
    assert run_cli(monkeypatch, "--email", "Owner@Portfolio.com", "--name", "Owner") == 0

    out = capsys.readouterr().out
    assert "Admin account created" in out
    password = out.split("Temporary password: ")[1].splitlines()[0]

    user = asyncio.run(find_user(database_url, "owner@portfolio.com"))
    assert user is not None
    assert user.role == UserRole.ADMIN
    assert user.name == "Owner"
    hasher = PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)
    assert hasher.verify(password, user.password_hash)


def test_duplicate_email_exits_with_error(database_url, monkeypatch, capsys):
    assert run_cli(monkeypatch, "--email", "owner@portfolio.com", "--password", "Owner2024") == 0
    capsys.readouterr()

    assert run_cli(monkeypatch, "--email", "OWNER@portfolio.com", "--password", "Other2024") == 1
    assert "already registered" in capsys.readouterr().out


def test_weak_password_is_refused(database_url, monkeypatch, capsys):
    assert run_cli(monkeypatch, "--email", "owner@portfolio.com", "--password", "weak") == 1
    assert "Error:" in capsys.readouterr().out
    assert asyncio.run(find_user(database_url, "owner@portfolio.com")) is None
