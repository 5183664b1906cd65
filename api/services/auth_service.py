"""
Authentication and identity related use cases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from api.core.config import Settings, get_settings
from api.core.errors import (
    AccountDisabled,
    ConflictError,
    DuplicateEmail,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationError,
)
from api.core.mailer import send_template
from api.core.security import hash_password, hash_token, new_reset_token, verify_password
from api.core.utils import frontend_url, utcnow
from api.db.models import Profile, User
from api.domain.slugs import generate_unique_slug
from api.repositories.sql_repository import SQLRepository
from api.schemas import default_theme
from api.services.session_service import issue_token


@dataclass
class AuthResult:
    user: User
    profile: Optional[Profile]
    token: str


@dataclass
class AuthService:
    """Handles registration, login, password reset and password change flows."""

    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return utcnow()

    def new_profile(self, first_name: str, last_name: str) -> Profile:
        slug = generate_unique_slug(first_name, last_name, self.repository.slug_exists)
        return Profile(
            slug=slug,
            display_name=f"{first_name} {last_name}".strip(),
            links=[],
            social_links=[],
            theme=default_theme(),
            is_public=True,
        )

    def _send_welcome(self, user: User, profile: Profile) -> None:
        profile_url = frontend_url(f"/{profile.slug}", self.settings.frontend_url)
        editor_url = frontend_url("/dashboard", self.settings.frontend_url)
        send_template(
            "welcome",
            user.email,
            f"Welcome {user.first_name}! Your page is live at {profile_url}",
            first_name=user.first_name,
            profile_url=profile_url,
            editor_url=editor_url,
        )

    # -------------------------------------- registration --------------------------------------
    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
    ) -> AuthResult:
        email = (email or "").strip().lower()
        if self.repository.get_user_by_email(email):
            raise DuplicateEmail()
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            role="user",
            is_active=True,
        )
        profile = self.new_profile(user.first_name, user.last_name)
        try:
            user, profile = self.repository.create_account(user, profile)
        except IntegrityError:
            # lost a race against a concurrent registration; nothing was committed
            if self.repository.get_user_by_email(email):
                raise DuplicateEmail() from None
            raise ConflictError("Slug already in use, please retry") from None
        logger.info("Registered user {} with profile /{}", user.id, profile.slug)
        self._send_welcome(user, profile)
        return AuthResult(user=user, profile=profile, token=issue_token(user, self.settings))

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> AuthResult:
        user = self.repository.get_user_by_email(email)
        # same error whether the account is unknown or the password is wrong
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        if not user.is_active:
            raise AccountDisabled()
        profile = self.repository.get_profile_for_user(user.id)
        return AuthResult(user=user, profile=profile, token=issue_token(user, self.settings))

    # -------------------------------------- password reset --------------------------------------
    def issue_password_reset(self, email: str) -> bool:
        """Store a hashed single-use token and email the raw one. Callers never reveal the result."""
        user = self.repository.get_user_by_email(email)
        if not user or not user.is_active:
            return False
        token = new_reset_token()
        expires_at = self._now() + timedelta(seconds=self.settings.password_reset_ttl)
        self.repository.update_user(user.id, reset_token_hash=hash_token(token), reset_token_expires_at=expires_at)
        reset_url = frontend_url(f"/reset-password?token={token}", self.settings.frontend_url)
        send_template(
            "password_reset",
            user.email,
            f"Use this link to reset your password: {reset_url}",
            first_name=user.first_name,
            reset_url=reset_url,
            ttl_minutes=max(1, self.settings.password_reset_ttl // 60),
        )
        return True

    def reset_password(self, token: str, password: str) -> User:
        token = (token or "").strip()
        if not token:
            raise InvalidOrExpiredToken()
        user_id = self.repository.consume_reset_token(
            hash_token(token), now=self._now(), password_hash=hash_password(password)
        )
        if user_id is None:
            raise InvalidOrExpiredToken()
        logger.info("Password reset completed for user {}", user_id)
        return self.repository.get_user(user_id)

    # -------------------------------------- password change --------------------------------------
    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        self.repository.update_user(user.id, password_hash=hash_password(new_password))
