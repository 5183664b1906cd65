from __future__ import annotations

from fastapi import APIRouter, Depends, status

from api.core.responses import success_response
from api.dependencies import subscription_service
from api.schemas import PlanCreate, PlanUpdate, UserSubscriptionCreate, UserSubscriptionUpdate
from api.services.session_service import require_admin
from api.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
admin = [Depends(require_admin)]


@router.get("/plans")
def public_plans(service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.public_plans())


@router.get("", dependencies=admin)
def list_plans(service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.admin_plans())


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=admin)
def create_plan(payload: PlanCreate, service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.create_plan(payload), "Plan created")


@router.get("/users/all", dependencies=admin)
def list_bindings(service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.all_bindings())


@router.post("/users", status_code=status.HTTP_201_CREATED, dependencies=admin)
def bind_user(payload: UserSubscriptionCreate, service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.bind(payload), "Subscription created")


@router.put("/users/{binding_id}", dependencies=admin)
def update_binding(
    binding_id: str,
    payload: UserSubscriptionUpdate,
    service: SubscriptionService = Depends(subscription_service),
):
    return success_response(service.update_binding(binding_id, payload))


@router.get("/stats/overview", dependencies=admin)
def overview(service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.overview())


@router.get("/{plan_id}", dependencies=admin)
def get_plan(plan_id: str, service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.get_plan(plan_id))


@router.get("/{plan_id}/subscribers", dependencies=admin)
def plan_subscribers(plan_id: str, service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.subscribers(plan_id))


@router.put("/{plan_id}", dependencies=admin)
def update_plan(plan_id: str, payload: PlanUpdate, service: SubscriptionService = Depends(subscription_service)):
    return success_response(service.update_plan(plan_id, payload))


@router.delete("/{plan_id}", dependencies=admin)
def delete_plan(plan_id: str, service: SubscriptionService = Depends(subscription_service)):
    service.delete_plan(plan_id)
    return success_response(None, "Plan deleted")
