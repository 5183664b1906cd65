from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.core.responses import paginated_response, success_response
from api.db.models import User
from api.dependencies import user_service
from api.schemas import AdminUserUpdate, UserSelfUpdate
from api.services.session_service import current_user, require_admin
from api.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
def read_me(user: User = Depends(current_user), service: UserService = Depends(user_service)):
    return success_response(service.me(user))


@router.put("/me")
def update_me(
    payload: UserSelfUpdate,
    user: User = Depends(current_user),
    service: UserService = Depends(user_service),
):
    return success_response(service.update_me(user, payload), "Account updated")


@router.delete("/me")
def delete_me(user: User = Depends(current_user), service: UserService = Depends(user_service)):
    service.deactivate(user.id)
    return success_response(None, "Account deactivated")


@router.get("", dependencies=[Depends(require_admin)])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    service: UserService = Depends(user_service),
):
    items, total = service.list_users(page=page, limit=limit, search=search)
    return paginated_response(items, page, limit, total)


@router.get("/{user_id}", dependencies=[Depends(require_admin)])
def get_user(user_id: str, service: UserService = Depends(user_service)):
    return success_response(service.get(user_id))


@router.put("/{user_id}", dependencies=[Depends(require_admin)])
def update_user(user_id: str, payload: AdminUserUpdate, service: UserService = Depends(user_service)):
    return success_response(service.admin_update(user_id, payload), "User updated")


@router.delete("/{user_id}", dependencies=[Depends(require_admin)])
def deactivate_user(user_id: str, service: UserService = Depends(user_service)):
    service.deactivate(user_id)
    return success_response(None, "User deactivated")
