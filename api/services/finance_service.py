"""Per-user finance records: payment cards, bills and physical card orders."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from api.core.errors import NotFoundError
from api.core.utils import utcnow
from api.db.models import User
from api.domain.lifecycle import ShipmentStatus, validate_transition
from api.repositories.sql_repository import SQLRepository
from api.schemas import BillCreate, PaymentCardCreate, PhysicalCardUpdate
from api.services.serializers import bill_to_dict, finance_to_dict, physical_card_to_dict


def add_payment_card(cards: list[dict], card: dict) -> list[dict]:
    """The first card, or one flagged isDefault, becomes the only default."""
    cards = [dict(item) for item in cards]
    if card.get("isDefault") or not cards:
        for item in cards:
            item["isDefault"] = False
        card = {**card, "isDefault": True}
    return cards + [card]


def remove_payment_card(cards: list[dict], card_id: str) -> list[dict] | None:
    """Drop a card; if it was the default, the first remaining one takes over. None when unknown."""
    index = next((i for i, item in enumerate(cards) if item.get("id") == card_id), None)
    if index is None:
        return None
    was_default = bool(cards[index].get("isDefault"))
    remaining = [dict(item) for i, item in enumerate(cards) if i != index]
    if was_default and remaining:
        remaining[0]["isDefault"] = True
    return remaining


@dataclass
class FinanceService:
    repository: Optional[SQLRepository] = None

    def __post_init__(self):
        self.repository = self.repository or SQLRepository()

    def overview(self, user: User) -> dict:
        finance = self.repository.ensure_finance(user.id)
        bills, _total = self.repository.list_bills(user.id, page=1, limit=5)
        data = finance_to_dict(finance)
        data["recentBills"] = [bill_to_dict(bill) for bill in bills]
        data["physicalCards"] = [physical_card_to_dict(card) for card in self.repository.list_physical_cards(user.id)]
        return data

    # -------------------------------------- payment cards --------------------------------------
    def payment_cards(self, user: User) -> list[dict]:
        finance = self.repository.get_finance(user.id)
        return [dict(card) for card in (finance.payment_cards if finance else [])]

    def add_card(self, user: User, payload: PaymentCardCreate) -> dict:
        finance = self.repository.ensure_finance(user.id)
        card = {"id": uuid.uuid4().hex[:12], **payload.model_dump(by_alias=True)}
        cards = add_payment_card(finance.payment_cards or [], card)
        self.repository.save_payment_cards(user.id, cards)
        return cards[-1]

    def remove_card(self, user: User, card_id: str) -> None:
        finance = self.repository.get_finance(user.id)
        if not finance:
            raise NotFoundError("No payment card found")
        remaining = remove_payment_card(finance.payment_cards or [], card_id)
        if remaining is None:
            raise NotFoundError("Payment card not found")
        self.repository.save_payment_cards(user.id, remaining)

    def set_default(self, user: User, card_id: str) -> dict:
        finance = self.repository.get_finance(user.id)
        cards = [dict(card) for card in (finance.payment_cards if finance else [])]
        if not any(card.get("id") == card_id for card in cards):
            raise NotFoundError("Payment card not found")
        for card in cards:
            card["isDefault"] = card.get("id") == card_id
        self.repository.save_payment_cards(user.id, cards)
        return next(card for card in cards if card["isDefault"])

    # -------------------------------------- subscription / bills --------------------------------------
    def subscription(self, user: User) -> Optional[dict]:
        finance = self.repository.get_finance(user.id)
        return finance.subscription if finance else None

    def bills(self, user: User, *, page: int, limit: int) -> tuple[list[dict], int]:
        bills, total = self.repository.list_bills(user.id, page=page, limit=limit)
        return [bill_to_dict(bill) for bill in bills], total

    def create_bill(self, payload: BillCreate) -> dict:
        if not self.repository.get_user(payload.user_id):
            raise NotFoundError("User not found")
        values = payload.model_dump()
        if payload.status == "paid":
            values["paid_at"] = utcnow()
        return bill_to_dict(self.repository.create_bill(**values))

    # -------------------------------------- physical cards --------------------------------------
    def physical_cards(self, user: User) -> list[dict]:
        return [physical_card_to_dict(card) for card in self.repository.list_physical_cards(user.id)]

    def order_physical_card(self, user: User, card_type: str) -> dict:
        card = self.repository.create_physical_card(
            user_id=user.id, type=card_type, status=ShipmentStatus.ORDERED.value, ordered_at=utcnow()
        )
        return physical_card_to_dict(card)

    def update_physical_card(self, card_id: str, payload: PhysicalCardUpdate) -> dict:
        card = self.repository.get_physical_card(card_id)
        if not card:
            raise NotFoundError("Physical card not found")
        status = validate_transition(ShipmentStatus, card.status, payload.status)
        values: dict = {"status": status.value}
        if payload.tracking_number:
            values["tracking_number"] = payload.tracking_number
        if status is ShipmentStatus.SHIPPED:
            values["shipped_at"] = utcnow()
        elif status is ShipmentStatus.DELIVERED:
            values["delivered_at"] = utcnow()
        return physical_card_to_dict(self.repository.update_physical_card(card.id, **values))
