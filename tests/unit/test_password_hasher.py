"""
Unit tests for bcrypt password hashing.

Uses the lowest bcrypt cost factor to keep the suite fast.
"""

import pytest

from api.src.services.password_hasher import PasswordHasher


@pytest.fixture(scope="module")
def hasher():
    return PasswordHasher(rounds=4)


def test_hash_is_not_plain_text(hasher):
    hashed = hasher.hash("SecurePassword123!")

    assert hashed != "SecurePassword123!"
    assert hashed.startswith("$2b$04$")


def test_hash_is_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")


def test_hash_matches_only_its_password(hasher):
    hashed = hasher.hash("correct horse")

    assert hasher.pwd_context.verify("correct horse", hashed) is True
    assert hasher.pwd_context.verify("wrong horse", hashed) is False


def test_rounds_default_to_settings(monkeypatch):
    monkeypatch.setenv("USER_API_PASSWORD_BCRYPT_ROUNDS", "5")
    from api.src.config import get_settings

    get_settings.cache_clear()
    try:
        assert PasswordHasher().rounds == 5
    finally:
        get_settings.cache_clear()
