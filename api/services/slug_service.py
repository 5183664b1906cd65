"""Slug-related use cases (availability checks, assignment)."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from api.core.errors import NotFoundError, SlugTaken, ValidationError
from api.domain.slugs import is_valid_slug, normalize_slug
from api.repositories.sql_repository import SQLRepository


class SlugService:
    """Provides slug availability checks and assignment helpers."""

    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    def normalize(self, value: str | None) -> str:
        return normalize_slug(value)

    def is_available(self, value: str | None, *, profile_id: str | None = None) -> bool:
        candidate = self.normalize(value)
        if not is_valid_slug(candidate):
            return False
        return not self.repository.slug_exists(candidate, exclude_profile_id=profile_id)

    def assign_slug(self, profile_id: str, slug: str) -> str:
        candidate = self.normalize(slug)
        if not is_valid_slug(candidate):
            raise ValidationError("Invalid slug: use 3-50 characters among a-z, 0-9, '.', '_' and '-'")
        profile = self.repository.get_profile(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        if candidate == profile.slug:
            return candidate
        if self.repository.slug_exists(candidate, exclude_profile_id=profile_id):
            raise SlugTaken(status_code=400)
        try:
            self.repository.update_profile(profile_id, slug=candidate)
        except IntegrityError:
            raise SlugTaken(status_code=400) from None
        return candidate
