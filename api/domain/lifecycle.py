"""
Status lifecycles for cards, orders, subscriptions and shipped physical cards.

Each lifecycle is an Enum plus a table of forward transitions. Admin writes use
the permissive mode (any known status is accepted); the strict mode only allows
the listed forward moves and is used by flows that advance a record one step.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Type, TypeVar

from api.core.errors import InvalidTransition, ValidationError


class CardStatus(str, Enum):
    ORDERED = "ordered"
    MANUFACTURING = "manufacturing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    ACTIVATED = "activated"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ShipmentStatus(str, Enum):
    ORDERED = "ordered"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


CARD_TRANSITIONS: Mapping[CardStatus, frozenset] = {
    CardStatus.ORDERED: frozenset({CardStatus.MANUFACTURING, CardStatus.ACTIVATED}),
    CardStatus.MANUFACTURING: frozenset({CardStatus.SHIPPED, CardStatus.ACTIVATED}),
    CardStatus.SHIPPED: frozenset({CardStatus.DELIVERED, CardStatus.ACTIVATED}),
    CardStatus.DELIVERED: frozenset({CardStatus.ACTIVATED}),
    CardStatus.ACTIVATED: frozenset(),
}

ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

SUBSCRIPTION_TRANSITIONS: Mapping[SubscriptionStatus, frozenset] = {
    SubscriptionStatus.ACTIVE: frozenset(
        {SubscriptionStatus.PAUSED, SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED}
    ),
    SubscriptionStatus.PAUSED: frozenset(
        {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED}
    ),
    SubscriptionStatus.CANCELLED: frozenset({SubscriptionStatus.ACTIVE}),
    SubscriptionStatus.EXPIRED: frozenset({SubscriptionStatus.ACTIVE}),
}

SHIPMENT_TRANSITIONS: Mapping[ShipmentStatus, frozenset] = {
    ShipmentStatus.ORDERED: frozenset({ShipmentStatus.PROCESSING, ShipmentStatus.SHIPPED}),
    ShipmentStatus.PROCESSING: frozenset({ShipmentStatus.SHIPPED}),
    ShipmentStatus.SHIPPED: frozenset({ShipmentStatus.DELIVERED}),
    ShipmentStatus.DELIVERED: frozenset(),
}

_TABLES = {
    CardStatus: CARD_TRANSITIONS,
    OrderStatus: ORDER_TRANSITIONS,
    SubscriptionStatus: SUBSCRIPTION_TRANSITIONS,
    ShipmentStatus: SHIPMENT_TRANSITIONS,
}

S = TypeVar("S", bound=Enum)


def parse_status(kind: Type[S], value: str | S) -> S:
    """Coerce a raw string into the lifecycle enum, rejecting unknown values."""
    if isinstance(value, kind):
        return value
    try:
        return kind(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in kind)
        raise ValidationError(f"Invalid status '{value}' (expected one of: {allowed})") from None


def can_transition(current: S, target: S) -> bool:
    if current == target:
        return True
    return target in _TABLES[type(current)][current]


def validate_transition(kind: Type[S], current: str | S, target: str | S, *, strict: bool = False) -> S:
    """Return the parsed target status or raise.

    With strict=False any known status is accepted, matching how admins edit
    records directly. With strict=True only the forward moves listed in the
    transition table pass.
    """
    target_status = parse_status(kind, target)
    if not strict:
        return target_status
    current_status = parse_status(kind, current)
    if not can_transition(current_status, target_status):
        raise InvalidTransition(f"Cannot move from '{current_status.value}' to '{target_status.value}'")
    return target_status
