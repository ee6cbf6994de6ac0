"""
Tests for password hashing and access tokens
"""

from datetime import timedelta

from jose import jwt

from odysea.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from odysea.core.settings import Settings

SETTINGS = Settings(_env_file=None, JWT_SECRET="unit-test-secret", LOG_FILE="")


def test_password_hash_round_trip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong-password", hashed)


def test_verify_rejects_malformed_hash():
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_access_token_carries_subject():
    token = create_access_token({"sub": "user-1"}, SETTINGS)
    payload = decode_access_token(token, SETTINGS)
    assert payload["sub"] == "user-1"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "user-1"}, SETTINGS, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token, SETTINGS) is None


def test_token_signed_with_other_secret_is_rejected():
    other = Settings(_env_file=None, JWT_SECRET="someone-else", LOG_FILE="")
    token = create_access_token({"sub": "user-1"}, other)
    assert decode_access_token(token, SETTINGS) is None


def test_token_without_access_type_is_rejected():
    token = jwt.encode({"sub": "user-1"}, SETTINGS.JWT_SECRET, algorithm=SETTINGS.JWT_ALGORITHM)
    assert decode_access_token(token, SETTINGS) is None
