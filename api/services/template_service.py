"""Profile design templates. Deleting a template only retires it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from api.core.config import Settings, get_settings
from api.core.errors import NotFoundError
from api.db.models import Template, User
from api.repositories.sql_repository import SQLRepository
from api.schemas import TemplateCreate, TemplateUpdate
from api.services.profile_service import ProfileService, merge_theme
from api.services.serializers import template_to_dict


@dataclass
class TemplateService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    def _template(self, template_id: str, *, active_only: bool = False) -> Template:
        template = self.repository.get_template(template_id)
        if not template or (active_only and not template.is_active):
            raise NotFoundError("Template not found")
        return template

    def list_active(self) -> list[dict]:
        return [template_to_dict(t) for t in self.repository.list_templates(active_only=True)]

    def list_all(self) -> list[dict]:
        return [template_to_dict(t) for t in self.repository.list_templates(active_only=False)]

    def get(self, template_id: str) -> dict:
        return template_to_dict(self._template(template_id))

    def apply(self, user: User, template_id: str) -> dict:
        template = self._template(template_id, active_only=True)
        profiles = ProfileService(repository=self.repository, settings=self.settings)
        return profiles.apply_theme(user, template.theme or {}, template.id)

    def create(self, payload: TemplateCreate) -> dict:
        values = payload.model_dump(exclude={"theme"})
        values["theme"] = payload.theme.model_dump(by_alias=True)
        return template_to_dict(self.repository.create_template(**values))

    def update(self, template_id: str, payload: TemplateUpdate) -> dict:
        template = self._template(template_id)
        values = {k: v for k, v in payload.patch().items() if v is not None and k != "theme"}
        if payload.theme is not None:
            values["theme"] = merge_theme(template.theme, payload.theme)
        if values:
            template = self.repository.update_template(template.id, **values)
        return template_to_dict(template)

    def delete(self, template_id: str) -> None:
        template = self._template(template_id)
        self.repository.update_template(template.id, is_active=False)
