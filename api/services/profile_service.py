"""
Profile / link page use cases.

Links, social links and the theme live in JSON columns on the profile row.
Every write rebuilds the list and assigns it back, so SQLAlchemy sees the
change. Links keep the camelCase shape they have on the wire.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

from api.core.config import Settings, get_settings
from api.core.errors import AuthorizationError, NotFoundError, SlugTaken, ValidationError
from api.core.utils import frontend_url
from api.db.models import Profile, User
from api.repositories.sql_repository import SQLRepository
from api.schemas import (
    AdminProfileUpdate,
    LinkCreate,
    LinkUpdate,
    ProfileLink,
    ProfileUpdate,
    ThemePatch,
)
from api.services.profile_display import build_vcard, normalize_external_url, qr_png
from api.services.serializers import profile_to_dict, public_profile_to_dict, sorted_links
from api.services.slug_service import SlugService


def new_link_id() -> str:
    return uuid.uuid4().hex[:12]


def merge_theme(current: dict | None, patch: ThemePatch | None) -> dict:
    theme = dict(current or {})
    if patch is not None:
        theme.update(patch.model_dump(exclude_unset=True, by_alias=True))
    return theme


def reorder_links(links: list[dict], link_ids: list[str]) -> list[dict]:
    """Rewrite order as the index of each link's id in `link_ids`.

    Links whose id is missing from `link_ids` are dropped; clients send the
    full list. Unknown ids are skipped but still take up their index.
    """
    by_id = {link.get("id"): link for link in links}
    result: list[dict] = []
    for index, link_id in enumerate(link_ids):
        link = by_id.get(link_id)
        if link is None or any(item.get("id") == link_id for item in result):
            continue
        result.append({**link, "order": index})
    return result


@dataclass
class ProfileService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()
        self.slugs = SlugService(self.repository)

    # -------------------------------------- lookups --------------------------------------
    def get_for_user(self, user: User) -> Profile:
        profile = self.repository.get_profile_for_user(user.id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def _public_profile(self, slug: str) -> Profile:
        profile = self.repository.get_profile_by_slug(slug)
        if not profile:
            raise NotFoundError("Profile not found")
        if not profile.is_public:
            raise AuthorizationError("This profile is private")
        return profile

    def get_public(self, slug: str) -> dict:
        profile = self._public_profile(slug)
        owner = self.repository.get_user(profile.user_id)
        return public_profile_to_dict(profile, is_admin=bool(owner and owner.role == "admin"))

    def public_url(self, profile: Profile) -> str:
        return frontend_url(f"/{profile.slug}", self.settings.frontend_url)

    def public_vcard(self, slug: str) -> tuple[str, str]:
        profile = self._public_profile(slug)
        return profile.slug, build_vcard(profile, self.public_url(profile))

    def public_qr(self, slug: str) -> bytes:
        profile = self._public_profile(slug)
        return qr_png(self.public_url(profile))

    # -------------------------------------- owner edits --------------------------------------
    def _link_dict(self, link: ProfileLink | LinkCreate, *, order: int) -> dict:
        data = link.model_dump(by_alias=True)
        data["id"] = data.get("id") or new_link_id()
        data["url"] = normalize_external_url(data["url"])
        if data.get("order") is None:
            data["order"] = order
        return data

    def _apply_update(self, profile: Profile, payload: ProfileUpdate) -> dict:
        values = payload.patch()
        for key in ("theme", "slug", "is_public", "links", "social_links"):
            values.pop(key, None)
        if values.get("display_name", "") is None:
            values.pop("display_name")
        if payload.links is not None:
            values["links"] = [self._link_dict(link, order=index) for index, link in enumerate(payload.links)]
        if payload.social_links is not None:
            values["social_links"] = [item.model_dump(by_alias=True) for item in payload.social_links]
        if payload.theme is not None:
            values["theme"] = merge_theme(profile.theme, payload.theme)
        return values

    def update(self, user: User, payload: ProfileUpdate) -> dict:
        profile = self.get_for_user(user)
        values = self._apply_update(profile, payload)
        if values:
            profile = self.repository.update_profile(profile.id, **values)
        return profile_to_dict(profile)

    def update_slug(self, user: User, slug: str) -> dict:
        profile = self.get_for_user(user)
        new_slug = self.slugs.assign_slug(profile.id, slug)
        return {"slug": new_slug}

    def check_slug(self, slug: str, user: User | None = None) -> dict:
        candidate = self.slugs.normalize(slug)
        profile_id = None
        if user is not None:
            own = self.repository.get_profile_for_user(user.id)
            profile_id = own.id if own else None
        return {"available": self.slugs.is_available(candidate, profile_id=profile_id), "slug": candidate}

    # -------------------------------------- links --------------------------------------
    def add_link(self, user: User, payload: LinkCreate) -> dict:
        profile = self.get_for_user(user)
        links = sorted_links(profile.links)
        next_order = max((link.get("order") or 0 for link in links), default=-1) + 1
        link = self._link_dict(payload, order=next_order)
        self.repository.update_profile(profile.id, links=links + [link])
        return link

    def update_link(self, user: User, link_id: str, payload: LinkUpdate) -> dict:
        profile = self.get_for_user(user)
        links = sorted_links(profile.links)
        for index, link in enumerate(links):
            if link.get("id") == link_id:
                patch = payload.model_dump(exclude_unset=True, by_alias=True)
                if patch.get("url"):
                    patch["url"] = normalize_external_url(patch["url"])
                links[index] = {**link, **patch}
                self.repository.update_profile(profile.id, links=links)
                return links[index]
        raise NotFoundError("Link not found")

    def delete_link(self, user: User, link_id: str) -> None:
        profile = self.get_for_user(user)
        links = sorted_links(profile.links)
        remaining = [link for link in links if link.get("id") != link_id]
        if len(remaining) == len(links):
            raise NotFoundError("Link not found")
        self.repository.update_profile(profile.id, links=remaining)

    def reorder(self, user: User, link_ids: list[str]) -> list[dict]:
        profile = self.get_for_user(user)
        links = reorder_links(sorted_links(profile.links), link_ids)
        self.repository.update_profile(profile.id, links=links)
        return links

    # -------------------------------------- admin --------------------------------------
    def admin_list(self) -> list[dict]:
        profiles = self.repository.list_profiles()
        views = dict(self.repository.scans_by_profile())
        users = self.repository.get_users(p.user_id for p in profiles)
        result = []
        for profile in profiles:
            data = profile_to_dict(profile)
            owner = users.get(profile.user_id)
            data["linksCount"] = len(profile.links or [])
            data["views"] = views.get(profile.id, 0)
            data["user"] = (
                {"id": owner.id, "email": owner.email, "firstName": owner.first_name, "lastName": owner.last_name}
                if owner
                else None
            )
            result.append(data)
        return result

    def _admin_profile(self, profile_id: str) -> Profile:
        profile = self.repository.get_profile(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def admin_update(self, profile_id: str, payload: AdminProfileUpdate) -> dict:
        profile = self._admin_profile(profile_id)
        values = self._apply_update(profile, payload)
        if payload.is_public is not None:
            values["is_public"] = payload.is_public
        if payload.slug is not None and payload.slug != profile.slug:
            if not self.slugs.is_available(payload.slug, profile_id=profile.id):
                raise SlugTaken(status_code=400)
            values["slug"] = self.slugs.normalize(payload.slug)
        if values:
            profile = self.repository.update_profile(profile.id, **values)
        return profile_to_dict(profile)

    def toggle_public(self, profile_id: str) -> dict:
        profile = self._admin_profile(profile_id)
        profile = self.repository.update_profile(profile.id, is_public=not profile.is_public)
        return profile_to_dict(profile)

    def admin_delete(self, profile_id: str) -> None:
        if not self.repository.delete_profile(profile_id):
            raise NotFoundError("Profile not found")

    def apply_theme(self, user: User, theme: dict, template_id: str) -> dict:
        profile = self.get_for_user(user)
        if not isinstance(theme, dict):
            raise ValidationError("Template has no theme")
        profile = self.repository.update_profile(profile.id, theme=dict(theme), template_id=template_id)
        return profile_to_dict(profile)
