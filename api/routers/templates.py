from __future__ import annotations

from fastapi import APIRouter, Depends, status

from api.core.responses import success_response
from api.db.models import User
from api.dependencies import template_service
from api.schemas import TemplateCreate, TemplateUpdate
from api.services.session_service import current_user, require_admin
from api.services.template_service import TemplateService

router = APIRouter(prefix="/api/templates", tags=["templates"])


@router.get("")
def list_templates(service: TemplateService = Depends(template_service)):
    return success_response(service.list_active())


@router.get("/admin/all", dependencies=[Depends(require_admin)])
def list_all_templates(service: TemplateService = Depends(template_service)):
    return success_response(service.list_all())


@router.get("/{template_id}")
def get_template(template_id: str, service: TemplateService = Depends(template_service)):
    return success_response(service.get(template_id))


@router.post("/{template_id}/apply")
def apply_template(
    template_id: str,
    user: User = Depends(current_user),
    service: TemplateService = Depends(template_service),
):
    return success_response(service.apply(user, template_id), "Template applied")


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_template(payload: TemplateCreate, service: TemplateService = Depends(template_service)):
    return success_response(service.create(payload), "Template created")


@router.put("/{template_id}", dependencies=[Depends(require_admin)])
def update_template(template_id: str, payload: TemplateUpdate, service: TemplateService = Depends(template_service)):
    return success_response(service.update(template_id, payload))


@router.delete("/{template_id}", dependencies=[Depends(require_admin)])
def delete_template(template_id: str, service: TemplateService = Depends(template_service)):
    service.delete(template_id)
    return success_response(None, "Template deactivated")
