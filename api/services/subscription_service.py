"""Subscription plans, user bindings and recurring revenue figures."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from api.core.config import Settings, get_settings
from api.core.errors import ConflictError, NotFoundError, ValidationError
from api.core.utils import utcnow
from api.db.models import SubscriptionPlan, UserSubscription
from api.domain.lifecycle import SubscriptionStatus, validate_transition
from api.repositories.sql_repository import SQLRepository
from api.schemas import PlanCreate, PlanUpdate, UserSubscriptionCreate, UserSubscriptionUpdate
from api.services.serializers import plan_to_dict, user_subscription_to_dict

PERIODS = {"monthly": timedelta(days=30), "yearly": timedelta(days=365)}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def monthly_value(plan: SubscriptionPlan) -> float:
    """Monthly-normalized price; lifetime plans do not recur."""
    if plan.interval == "monthly":
        return float(plan.price)
    if plan.interval == "yearly":
        return float(plan.price) / 12
    return 0.0


def recurring_revenue(plans: list[SubscriptionPlan]) -> tuple[int, int]:
    """(MRR, ARR) for one active binding per entry in `plans`."""
    mrr = sum(monthly_value(plan) for plan in plans)
    return round_half_up(mrr), round_half_up(mrr * 12)


@dataclass
class SubscriptionService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    # -------------------------------------- plans --------------------------------------
    def public_plans(self) -> list[dict]:
        return [plan_to_dict(plan) for plan in self.repository.list_plans(active_only=True)]

    def _plan(self, plan_id: str) -> SubscriptionPlan:
        plan = self.repository.get_plan(plan_id)
        if not plan:
            raise NotFoundError("Subscription plan not found")
        return plan

    def get_plan(self, plan_id: str) -> dict:
        return plan_to_dict(self._plan(plan_id))

    def admin_plans(self) -> list[dict]:
        result = []
        for plan in self.repository.list_plans():
            active = self.repository.count_user_subscriptions(subscription_id=plan.id, status="active")
            total = self.repository.count_user_subscriptions(subscription_id=plan.id)
            data = plan_to_dict(plan)
            data.update(
                activeSubscribers=active,
                totalSubscribers=total,
                monthlyRevenue=monthly_value(plan) * active,
                totalRevenue=float(plan.price) * total,
            )
            result.append(data)
        return result

    def create_plan(self, payload: PlanCreate) -> dict:
        if self.repository.plan_slug_exists(payload.slug):
            raise ConflictError("A plan with this slug already exists")
        try:
            plan = self.repository.create_plan(**payload.model_dump())
        except IntegrityError:
            raise ConflictError("A plan with this slug already exists") from None
        return plan_to_dict(plan)

    def update_plan(self, plan_id: str, payload: PlanUpdate) -> dict:
        plan = self._plan(plan_id)
        values = {k: v for k, v in payload.patch().items() if v is not None}
        if "slug" in values:
            values["slug"] = values["slug"].lower()
            if self.repository.plan_slug_exists(values["slug"], exclude_id=plan.id):
                raise ConflictError("A plan with this slug already exists")
        if values:
            plan = self.repository.update_plan(plan.id, **values)
        return plan_to_dict(plan)

    def delete_plan(self, plan_id: str) -> None:
        plan = self._plan(plan_id)
        active = self.repository.count_user_subscriptions(subscription_id=plan.id, status="active")
        if active:
            raise ValidationError(f"Cannot delete this plan: {active} active subscriber(s) still use it")
        if self.repository.count_user_subscriptions(subscription_id=plan.id):
            # past bindings still reference the plan, so it is retired rather than removed
            self.repository.update_plan(plan.id, active=False)
            return
        self.repository.delete_plan(plan.id)

    # -------------------------------------- bindings --------------------------------------
    def subscribers(self, plan_id: str) -> list[dict]:
        plan = self._plan(plan_id)
        bindings = self.repository.list_user_subscriptions(subscription_id=plan.id)
        users = self.repository.get_users(b.user_id for b in bindings)
        return [user_subscription_to_dict(b, user=users.get(b.user_id)) for b in bindings]

    def all_bindings(self) -> list[dict]:
        bindings = self.repository.list_user_subscriptions()
        users = self.repository.get_users(b.user_id for b in bindings)
        plans = {plan.id: plan for plan in self.repository.list_plans()}
        return [
            user_subscription_to_dict(b, user=users.get(b.user_id), plan=plans.get(b.subscription_id))
            for b in bindings
        ]

    def _next_payment(self, plan: SubscriptionPlan, start: datetime) -> Optional[datetime]:
        period = PERIODS.get(plan.interval)
        return start + period if period else None

    def _sync_snapshot(self, binding: UserSubscription, plan: SubscriptionPlan) -> None:
        """Mirror the binding onto the user's finance record (what /finances/subscription shows)."""
        period_end = binding.end_date or binding.next_payment_date
        self.repository.set_finance_subscription(
            binding.user_id,
            {
                "userId": binding.user_id,
                "plan": plan.slug,
                "status": binding.status,
                "currentPeriodStart": binding.start_date.isoformat() if binding.start_date else None,
                "currentPeriodEnd": period_end.isoformat() if period_end else None,
                "cancelAtPeriodEnd": not binding.auto_renew,
            },
        )

    def bind(self, payload: UserSubscriptionCreate) -> dict:
        if not self.repository.get_user(payload.user_id):
            raise NotFoundError("User not found")
        plan = self._plan(payload.subscription_id)
        if not plan.active:
            raise ValidationError("This plan is not available")
        now = utcnow()
        binding = self.repository.create_user_subscription(
            user_id=payload.user_id,
            subscription_id=plan.id,
            status=SubscriptionStatus.ACTIVE.value,
            start_date=now,
            end_date=payload.end_date,
            auto_renew=payload.auto_renew,
            payment_method=payload.payment_method,
            last_payment_date=now,
            next_payment_date=self._next_payment(plan, now),
        )
        self._sync_snapshot(binding, plan)
        logger.info("User {} subscribed to plan {}", binding.user_id, plan.slug)
        return user_subscription_to_dict(binding, plan=plan)

    def update_binding(self, binding_id: str, payload: UserSubscriptionUpdate) -> dict:
        binding = self.repository.get_user_subscription(binding_id)
        if not binding:
            raise NotFoundError("User subscription not found")
        values = {k: v for k, v in payload.patch().items() if v is not None}
        if "status" in values:
            target = validate_transition(SubscriptionStatus, binding.status, values["status"], strict=True)
            values["status"] = target.value
            if target is SubscriptionStatus.CANCELLED:
                values["cancelled_at"] = utcnow()
            elif target is SubscriptionStatus.ACTIVE:
                values["cancelled_at"] = None
        if values:
            binding = self.repository.update_user_subscription(binding.id, **values)
        plan = self.repository.get_plan(binding.subscription_id)
        if plan:
            self._sync_snapshot(binding, plan)
        return user_subscription_to_dict(binding, user=self.repository.get_user(binding.user_id), plan=plan)

    # -------------------------------------- stats --------------------------------------
    def overview(self) -> dict:
        active = self.repository.active_bindings_with_plans()
        mrr, arr = recurring_revenue([plan for _binding, plan in active])
        by_plan: dict[str, int] = {}
        for binding, _plan in active:
            by_plan[binding.subscription_id] = by_plan.get(binding.subscription_id, 0) + 1
        return {
            "totalPlans": self.repository.count_plans(),
            "activePlans": self.repository.count_plans(active_only=True),
            "totalSubscribers": len(active),
            "mrr": mrr,
            "arr": arr,
            "subscriptionsByPlan": [{"subscriptionId": pid, "count": count} for pid, count in by_plan.items()],
        }
