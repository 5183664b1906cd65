"""Session helpers (issue bearer tokens, decode them, resolve the caller)."""
from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.core.config import Settings, get_settings
from api.core.errors import AuthenticationError, AuthorizationError
from api.db.models import User
from api.repositories.sql_repository import SQLRepository

ALGORITHM = "HS256"

bearer_scheme = HTTPBearer(auto_error=False, description="Session token returned by /api/auth/login")


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str
    role: str


def issue_token(user: User, settings: Settings | None = None, *, now: int | None = None) -> str:
    """Sign a session token carrying {userId, email, role}."""
    settings = settings or get_settings()
    issued = int(now if now is not None else time.time())
    payload = {
        "userId": user.id,
        "email": user.email,
        "role": user.role,
        "iat": issued,
        "exp": issued + max(60, settings.jwt_expires_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str, settings: Settings | None = None) -> SessionClaims:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired") from None
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token") from None
    user_id = payload.get("userId")
    if not user_id:
        raise AuthenticationError("Invalid or expired token")
    return SessionClaims(user_id=str(user_id), email=str(payload.get("email") or ""), role=str(payload.get("role") or "user"))


def _state(request: Request, name: str, fallback):
    value = getattr(getattr(request.app, "state", None), name, None)
    return value if value is not None else fallback()


def current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Resolve the bearer token to a live, active user or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    settings = _state(request, "settings", get_settings)
    repository = _state(request, "repository", SQLRepository)
    claims = decode_token(credentials.credentials, settings)
    user = repository.get_user(claims.user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    if not user.is_active:
        raise AuthenticationError("Account disabled")
    return user


def require_admin(user: User = Depends(current_user)) -> User:
    if user.role != "admin":
        raise AuthorizationError("Admin access required")
    return user
