"""Account self-service and the admin user directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from api.core.config import Settings, get_settings
from api.core.errors import DuplicateEmail, NotFoundError, ValidationError
from api.db.models import User
from api.repositories.sql_repository import SQLRepository
from api.schemas import AdminUserUpdate, UserSelfUpdate
from api.services.serializers import user_to_dict

MAX_PAGE_SIZE = 100


@dataclass
class UserService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    def _user(self, user_id: str) -> User:
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def me(self, user: User) -> dict:
        data = user_to_dict(user)
        profile = self.repository.get_profile_for_user(user.id)
        data["profile"] = {"id": profile.id, "slug": profile.slug} if profile else None
        return data

    def update_me(self, user: User, payload: UserSelfUpdate) -> dict:
        values = {k: v for k, v in payload.patch().items() if v is not None or k == "phone"}
        if values:
            user = self.repository.update_user(user.id, **values)
        return user_to_dict(user)

    def deactivate(self, user_id: str) -> None:
        """Soft delete: the account is disabled and its profiles go private."""
        user = self._user(user_id)
        self.repository.update_user(user.id, is_active=False)
        self.repository.set_profiles_public_for_user(user.id, False)
        logger.info("User {} deactivated", user.id)

    # -------------------------------------- admin --------------------------------------
    def list_users(self, *, page: int = 1, limit: int = 20, search: Optional[str] = None) -> tuple[list[dict], int]:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        limit = min(limit, MAX_PAGE_SIZE)
        users, total = self.repository.list_users(page=page, limit=limit, search=search)
        return [user_to_dict(user) for user in users], total

    def get(self, user_id: str) -> dict:
        return self.me(self._user(user_id))

    def admin_update(self, user_id: str, payload: AdminUserUpdate) -> dict:
        user = self._user(user_id)
        values = {k: v for k, v in payload.patch().items() if v is not None or k in ("phone", "company_id")}
        if "email" in values:
            values["email"] = str(values["email"])
            other = self.repository.get_user_by_email(values["email"])
            if other and other.id != user.id:
                raise DuplicateEmail()
        if "company_id" in values and values["company_id"] and not self.repository.get_company(values["company_id"]):
            raise NotFoundError("Company not found")
        if not values:
            return user_to_dict(user)
        try:
            user = self.repository.update_user(user.id, **values)
        except IntegrityError:
            raise DuplicateEmail() from None
        return user_to_dict(user)

    def set_role(self, user_id: str, role: str) -> dict:
        if role not in ("user", "admin"):
            raise ValidationError("role must be one of: user, admin")
        user = self._user(user_id)
        return user_to_dict(self.repository.update_user(user.id, role=role))

    def purge(self, user_id: str) -> None:
        """Hard delete with everything owned by the user."""
        if not self.repository.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("User {} deleted", user_id)
