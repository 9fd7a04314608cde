"""Tests for password hashing and access tokens."""

import pytest
from jose import JWTError

from devhub.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    pwd_context,
    verify_password,
)


def test_password_hash_round_trip() -> None:
    hashed = hash_password("s3cret-pass")

    assert hashed.startswith("$pbkdf2-sha256$")
    assert pwd_context.identify(hashed) == "pbkdf2_sha256"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_hashes_are_salted() -> None:
    assert hash_password("same") != hash_password("same")


@pytest.mark.parametrize("stored", ["", "plaintext", "pbkdf2_sha256$1000$salt$digest"])
def test_unrecognised_hash_never_matches(stored: str) -> None:
    assert verify_password("plaintext", stored) is False


def test_access_token_claims() -> None:
    payload = decode_access_token(create_access_token("user-1", "session-1"))

    assert payload["sub"] == "user-1"
    assert payload["sid"] == "session-1"


def test_tampered_token_is_rejected() -> None:
    token = create_access_token("user-1", "session-1")
    with pytest.raises(JWTError):
        decode_access_token(token[:-2] + ("AA" if not token.endswith("AA") else "BB"))
