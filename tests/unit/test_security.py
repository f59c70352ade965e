"""Tests for tokens, password hashing and the ``Requester`` identity."""

import json

import pytest

from user_directory_api.app.core import security
from user_directory_api.app.core.config import settings
from user_directory_api.app.core.security import (
    Requester,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_token_round_trip():
    token = create_access_token({"sub": "7"})
    payload = decode_access_token(token)
    assert payload["sub"] == "7"
    assert payload["exp"] > 0


def test_tampered_token_rejected():
    token = create_access_token({"sub": "7"})
    header, payload, signature = token.split(".")
    forged = create_access_token({"sub": "1"}).split(".")[1]
    assert decode_access_token(f"{header}.{forged}.{signature}") is None


def test_malformed_tokens_rejected():
    assert decode_access_token("not-a-token") is None
    assert decode_access_token("a.b.c") is None


def test_expired_token_rejected():
    token = create_access_token({"sub": "7"}, expires_delta=-10)
    assert decode_access_token(token) is None


def test_password_hash_and_verify():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", None)
    assert not verify_password("secret123", "garbage")


def test_requester_elevation_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "elevated_role_ids", (1,))
    assert Requester(user_id=1, role_id=1).is_elevated
    assert not Requester(user_id=2, role_id=2).is_elevated


@pytest.mark.parametrize("exp", ["soon", [1], {"at": 1}])
def test_signed_token_with_non_numeric_expiry_rejected(exp):
    header = security._b64_url_encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode("utf-8"))
    payload = security._b64_url_encode(json.dumps({"sub": "1", "exp": exp}).encode("utf-8"))
    signature = security._b64_url_encode(
        security._sign(f"{header}.{payload}".encode("utf-8"), settings.secret_key)
    )
    assert decode_access_token(f"{header}.{payload}.{signature}") is None
