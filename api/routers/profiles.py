from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials

from api.core.errors import AuthenticationError
from api.core.responses import success_response
from api.db.models import User
from api.dependencies import get_app_settings, get_repository, profile_service
from api.schemas import LinkCreate, LinkUpdate, ProfileUpdate, ReorderLinks, SlugUpdate
from api.services.profile_service import ProfileService
from api.services.serializers import profile_to_dict
from api.services.session_service import bearer_scheme, current_user, decode_token

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


def _optional_user(
    request: Request, credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)
) -> User | None:
    """The caller when a valid bearer token is present, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        claims = decode_token(credentials.credentials, get_app_settings(request))
    except AuthenticationError:
        return None
    user = get_repository(request).get_user(claims.user_id)
    return user if user and user.is_active else None


# -------------------------------------- public --------------------------------------
@router.get("/public/{slug}")
def public_profile(slug: str, service: ProfileService = Depends(profile_service)):
    return success_response(service.get_public(slug))


@router.get("/public/{slug}/qr.png", response_class=Response)
def public_qr(slug: str, service: ProfileService = Depends(profile_service)):
    return Response(content=service.public_qr(slug), media_type="image/png")


@router.get("/public/{slug}/vcard.vcf", response_class=Response)
def public_vcard(slug: str, service: ProfileService = Depends(profile_service)):
    name, text = service.public_vcard(slug)
    return Response(
        content=text,
        media_type="text/vcard; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{name}.vcf"'},
    )


@router.get("/check-slug/{slug}")
def check_slug(
    slug: str,
    user: User | None = Depends(_optional_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.check_slug(slug, user))


# -------------------------------------- owner --------------------------------------
@router.get("/me")
def my_profile(user: User = Depends(current_user), service: ProfileService = Depends(profile_service)):
    return success_response(profile_to_dict(service.get_for_user(user)))


@router.put("/me")
def update_my_profile(
    payload: ProfileUpdate,
    user: User = Depends(current_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.update(user, payload), "Profile updated")


@router.put("/me/slug")
def update_my_slug(
    payload: SlugUpdate,
    user: User = Depends(current_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.update_slug(user, payload.slug), "Slug updated")


@router.post("/me/links", status_code=status.HTTP_201_CREATED)
def add_link(
    payload: LinkCreate,
    user: User = Depends(current_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.add_link(user, payload), "Link added")


# declared before /me/links/{link_id} so "reorder" is not taken for an id
@router.put("/me/links/reorder")
def reorder_links(
    payload: ReorderLinks,
    user: User = Depends(current_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.reorder(user, payload.link_ids), "Links reordered")


@router.put("/me/links/{link_id}")
def update_link(
    link_id: str,
    payload: LinkUpdate,
    user: User = Depends(current_user),
    service: ProfileService = Depends(profile_service),
):
    return success_response(service.update_link(user, link_id, payload), "Link updated")


@router.delete("/me/links/{link_id}")
def delete_link(link_id: str, user: User = Depends(current_user), service: ProfileService = Depends(profile_service)):
    service.delete_link(user, link_id)
    return success_response(None, "Link deleted")
