import pytest

from app.auth.password import (
    PasswordHasher,
    generate_temp_password,
    validate_password_strength,
)


def test_hash_is_salted_and_verifies(hasher):
    first = hasher.hash("admin123")
    second = hasher.hash("admin123")

    assert first != second
    assert first.startswith("$argon2id$")
    assert hasher.verify("admin123", first)
    assert hasher.verify("admin123", second)


def test_wrong_password_does_not_verify(hasher):
    digest = hasher.hash("admin123")
    assert hasher.verify("admin124", digest) is False


def test_malformed_hash_does_not_verify(hasher):
    assert hasher.verify("admin123", "not-a-hash") is False
    assert hasher.verify("admin123", "") is False


def test_needs_rehash_when_cost_changes(hasher):
    digest = hasher.hash("admin123")
    assert hasher.needs_rehash(digest) is False

    stronger = PasswordHasher(time_cost=2, memory_cost=2048, parallelism=1)
    assert stronger.needs_rehash(digest) is True
    assert stronger.verify("admin123", digest)


def test_needs_rehash_on_garbage(hasher):
    assert hasher.needs_rehash("garbage") is True


def test_dummy_verify_always_fails(hasher):
    assert hasher.dummy_verify("admin123") is False
    # Second call reuses the throwaway hash
    assert hasher.dummy_verify("anything") is False


def test_password_strength_rules():
    ok, issues = validate_password_strength("Visitor2024")
    assert ok
    assert issues == []

    ok, issues = validate_password_strength("short")
    assert not ok
    assert any("at least 8 characters" in issue for issue in issues)
    assert any("uppercase" in issue for issue in issues)
    assert any("digit" in issue for issue in issues)


def test_temp_password_meets_strength_rules():
    for _ in range(20):
        password = generate_temp_password()
        assert len(password) == 16
        assert validate_password_strength(password)[0]

    assert len(generate_temp_password(4)) == 12


@pytest.mark.asyncio
async def test_async_variants_run_off_the_event_loop(hasher):
    digest = await hasher.hash_async("admin123")

    assert digest.startswith("$argon2id$")
    assert await hasher.verify_async("admin123", digest) is True
    assert await hasher.verify_async("admin124", digest) is False
    assert await hasher.dummy_verify_async("admin123") is False
