"""Security helpers (password hashing, reset tokens)."""

from __future__ import annotations

import hashlib
import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create an Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    hashed = stored[len(_PREFIX) :]
    try:
        return _ph.verify(hashed, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def new_reset_token() -> str:
    """Raw token handed to the user; only its digest is stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256((token or "").encode("utf-8")).hexdigest()
