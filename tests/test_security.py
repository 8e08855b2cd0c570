# tests/test_security.py
import pytest

from linkboard.core.errors import AuthenticationError
from linkboard.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from linkboard.core.settings import settings


def test_password_hash_is_bcrypt_at_configured_cost() -> None:
    hashed = hash_password("correct-horse")

    assert hashed.startswith("$2b$")
    assert hashed.split("$")[2] == f"{settings.bcrypt_rounds:02d}"
    assert hashed != hash_password("correct-horse")


def test_verify_password() -> None:
    hashed = hash_password("correct-horse")

    assert verify_password("correct-horse", hashed) is True
    assert verify_password("battery-staple", hashed) is False


def test_verify_password_with_malformed_hash() -> None:
    assert verify_password("correct-horse", "not-a-bcrypt-hash") is False


def test_access_token_round_trip() -> None:
    assert decode_access_token(create_access_token(42)) == 42


def test_expired_access_token_rejected() -> None:
    token = create_access_token(42, expires_minutes=-1)
    with pytest.raises(AuthenticationError):
        decode_access_token(token)
