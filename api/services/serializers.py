"""Entity -> JSON dict converters (camelCase keys, secrets never included)."""
from __future__ import annotations

from typing import Any, Optional

from api.core.utils import as_utc
from api.db.models import (
    Bill,
    ClientCard,
    Company,
    Order,
    PhysicalCard,
    ProductCard,
    Profile,
    SubscriptionPlan,
    Template,
    User,
    UserFinance,
    UserSubscription,
)
from api.schemas import default_theme


def _ts(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phone": user.phone,
        "role": user.role,
        "isActive": bool(user.is_active),
        "companyId": user.company_id,
        "createdAt": _ts(user.created_at),
        "updatedAt": _ts(user.updated_at),
    }


def sorted_links(links: list | None, *, active_only: bool = False) -> list[dict]:
    items = [dict(link) for link in (links or []) if isinstance(link, dict)]
    if active_only:
        items = [link for link in items if link.get("isActive", True)]
    return sorted(items, key=lambda link: link.get("order") or 0)


def profile_theme(profile: Profile) -> dict:
    theme = default_theme()
    theme.update({k: v for k, v in (profile.theme or {}).items() if v is not None})
    return theme


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "userId": profile.user_id,
        "slug": profile.slug,
        "displayName": profile.display_name,
        "bio": profile.bio,
        "avatarUrl": profile.avatar_url,
        "email": profile.email,
        "phone": profile.phone,
        "links": sorted_links(profile.links),
        "socialLinks": [dict(item) for item in (profile.social_links or [])],
        "theme": profile_theme(profile),
        "isPublic": bool(profile.is_public),
        "templateId": profile.template_id,
        "createdAt": _ts(profile.created_at),
        "updatedAt": _ts(profile.updated_at),
    }


def public_profile_to_dict(profile: Profile, *, is_admin: bool = False) -> dict[str, Any]:
    return {
        "slug": profile.slug,
        "displayName": profile.display_name,
        "bio": profile.bio,
        "avatarUrl": profile.avatar_url,
        "email": profile.email,
        "phone": profile.phone,
        "isAdmin": is_admin,
        "links": sorted_links(profile.links, active_only=True),
        "socialLinks": [dict(item) for item in (profile.social_links or []) if item.get("isActive", True)],
        "theme": profile_theme(profile),
    }


def template_to_dict(template: Template) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "thumbnailUrl": template.thumbnail_url,
        "theme": dict(template.theme or {}),
        "isActive": bool(template.is_active),
        "isPremium": bool(template.is_premium),
        "createdAt": _ts(template.created_at),
    }


def client_card_to_dict(card: ClientCard) -> dict[str, Any]:
    return {
        "id": card.id,
        "serialNumber": card.serial_number,
        "orderId": card.order_id,
        "userId": card.user_id,
        "profileId": card.profile_id,
        "customerName": card.customer_name,
        "email": card.email,
        "cardType": card.card_type,
        "design": card.design,
        "status": card.status,
        "shippingAddress": card.shipping_address,
        "trackingNumber": card.tracking_number,
        "orderDate": _ts(card.order_date),
        "deliveryDate": _ts(card.delivery_date),
        "activatedAt": _ts(card.activated_at),
        "createdAt": _ts(card.created_at),
        "updatedAt": _ts(card.updated_at),
    }


def card_setup_info(card: ClientCard) -> dict[str, Any]:
    """What an anonymous visitor may learn about a card from its serial."""
    return {
        "serialNumber": card.serial_number,
        "cardType": card.card_type,
        "design": card.design,
        "status": card.status,
        "isActivated": card.user_id is not None,
        "activatedAt": _ts(card.activated_at),
        "profileId": card.profile_id,
    }


def order_to_dict(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "userId": order.user_id,
        "customerName": order.customer_name,
        "email": order.email,
        "items": list(order.items or []),
        "total": order.total,
        "status": order.status,
        "cardDesign": order.card_design,
        "shippingAddress": order.shipping_address,
        "trackingNumber": order.tracking_number,
        "createdAt": _ts(order.created_at),
        "updatedAt": _ts(order.updated_at),
    }


def product_to_dict(product: ProductCard) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "type": product.type,
        "price": product.price,
        "stock": product.stock,
        "image": product.image,
        "active": bool(product.active),
        "description": product.description,
        "createdAt": _ts(product.created_at),
    }


def company_to_dict(company: Company) -> dict[str, Any]:
    return {
        "id": company.id,
        "name": company.name,
        "slug": company.slug,
        "logo": company.logo,
        "description": company.description,
        "industry": company.industry,
        "website": company.website,
        "email": company.email,
        "phone": company.phone,
        "address": company.address,
        "billingAddress": company.billing_address,
        "adminUserId": company.admin_user_id,
        "subscriptionId": company.subscription_id,
        "maxEmployees": company.max_employees,
        "maxCards": company.max_cards,
        "status": company.status,
        "notes": company.notes,
        "createdAt": _ts(company.created_at),
        "updatedAt": _ts(company.updated_at),
    }


def plan_to_dict(plan: SubscriptionPlan) -> dict[str, Any]:
    return {
        "id": plan.id,
        "name": plan.name,
        "slug": plan.slug,
        "description": plan.description,
        "price": plan.price,
        "currency": plan.currency,
        "interval": plan.interval,
        "features": list(plan.features or []),
        "maxProfiles": plan.max_profiles,
        "maxCards": plan.max_cards,
        "customDomain": bool(plan.custom_domain),
        "analytics": bool(plan.analytics),
        "priority": plan.priority,
        "active": bool(plan.active),
        "createdAt": _ts(plan.created_at),
    }


def user_subscription_to_dict(
    binding: UserSubscription, *, user: Optional[User] = None, plan: Optional[SubscriptionPlan] = None
) -> dict[str, Any]:
    data = {
        "id": binding.id,
        "userId": binding.user_id,
        "subscriptionId": binding.subscription_id,
        "status": binding.status,
        "startDate": _ts(binding.start_date),
        "endDate": _ts(binding.end_date),
        "cancelledAt": _ts(binding.cancelled_at),
        "autoRenew": bool(binding.auto_renew),
        "lastPaymentDate": _ts(binding.last_payment_date),
        "nextPaymentDate": _ts(binding.next_payment_date),
        "paymentMethod": binding.payment_method,
        "createdAt": _ts(binding.created_at),
    }
    if user is not None:
        data["user"] = {
            "id": user.id,
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
        }
    if plan is not None:
        data["subscription"] = {"id": plan.id, "name": plan.name, "slug": plan.slug, "price": plan.price, "interval": plan.interval}
    return data


def finance_to_dict(finance: UserFinance) -> dict[str, Any]:
    return {
        "id": finance.id,
        "userId": finance.user_id,
        "paymentCards": [dict(card) for card in (finance.payment_cards or [])],
        "subscription": finance.subscription,
    }


def bill_to_dict(bill: Bill) -> dict[str, Any]:
    return {
        "id": bill.id,
        "userId": bill.user_id,
        "amount": bill.amount,
        "currency": bill.currency,
        "description": bill.description,
        "status": bill.status,
        "invoiceUrl": bill.invoice_url,
        "paidAt": _ts(bill.paid_at),
        "createdAt": _ts(bill.created_at),
    }


def physical_card_to_dict(card: PhysicalCard) -> dict[str, Any]:
    return {
        "id": card.id,
        "userId": card.user_id,
        "type": card.type,
        "status": card.status,
        "trackingNumber": card.tracking_number,
        "orderedAt": _ts(card.ordered_at),
        "shippedAt": _ts(card.shipped_at),
        "deliveredAt": _ts(card.delivered_at),
    }
