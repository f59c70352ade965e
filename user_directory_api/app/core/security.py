"""
Security helpers: password hashing, bearer tokens and the request identity.

Tokens are compact JWTs signed with HMAC‑SHA256 and base64url
encoded; the subject (``sub``) is the user id, which unlike the login
never changes.  Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a
per‑password random salt.

``get_current_user`` is the FastAPI dependency that turns a bearer
token into a ``Requester``: the caller's user id and role, resolved
fresh from the database on every request.  Services receive the
``Requester`` as read‑only input and never look at tokens themselves.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings


PBKDF2_ITERATIONS = 100_000


@dataclass(frozen=True)
class Requester:
    """Identity of the authenticated caller."""

    user_id: int
    role_id: int
    login: str = ""

    @property
    def is_elevated(self) -> bool:
        return self.role_id in settings.elevated_role_ids


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], expires_delta: Optional[int] = None) -> str:
    """Create a signed token with the given claims.

    The payload is extended with an ``exp`` claim (UNIX timestamp).
    ``expires_delta`` is the lifetime in seconds and defaults to
    ``settings.access_token_expire_minutes * 60``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, str]]:
    """Verify a token and return its claims, or ``None`` if it is invalid or expired."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    try:
        actual_sig = _b64_url_decode(signature_b64)
        expected_sig = _sign(signing_input, settings.secret_key)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
        if not isinstance(data, dict) or data.get("exp") is None or int(data["exp"]) < int(time.time()):
            return None
    except (ValueError, TypeError, UnicodeDecodeError):
        # binascii.Error and json.JSONDecodeError are both ValueErrors
        return None
    return data


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Requester:
    """Dependency that resolves the bearer token to a ``Requester``.

    Raises HTTP 401 if the header is missing, the token is invalid or
    expired, or the user it names no longer exists.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid or expired token")

    from .db import get_connection
    conn = get_connection()
    try:
        row = conn.execute("SELECT id, login, role_id FROM users WHERE id = ?", (user_id,)).fetchone()
    finally:
        conn.close()
    if not row:
        raise _unauthorized("User no longer exists")
    return Requester(user_id=row["id"], role_id=row["role_id"], login=row["login"])


def require_elevated(current_user: Requester = Depends(get_current_user)) -> Requester:
    """Dependency allowing only callers holding an elevated role.

    Use as ``Depends(require_elevated)``.  Other callers get HTTP 403.
    """
    if not current_user.is_elevated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return current_user


def hash_password(password: str) -> str:
    """Hash a password with PBKDF2‑HMAC‑SHA256; returns ``"salthex$hashhex"``."""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check ``plain_password`` against a stored ``"salthex$hashhex"`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
