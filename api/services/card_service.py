"""
Physical card use cases: activation, public lookups, the scan ledger and the
admin client-card surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from api.core.config import Settings, get_settings
from api.core.errors import AlreadyActivated, AuthorizationError, DuplicateSerial, NotFoundError
from api.core.mailer import send_template
from api.core.utils import frontend_url, utcnow
from api.db.models import ClientCard, User
from api.domain.devices import classify_browser, classify_device
from api.domain.lifecycle import CardStatus, validate_transition
from api.repositories.sql_repository import SQLRepository
from api.schemas import ClientCardCreate, ClientCardUpdate
from api.services.serializers import card_setup_info, client_card_to_dict

ANALYTICS_DAYS = 30


def normalize_serial(serial: str | None) -> str:
    return (serial or "").strip().upper()


@dataclass
class ScanContext:
    ip_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None


@dataclass
class CardService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    # -------------------------------------- lookups --------------------------------------
    def get_by_serial(self, serial: str) -> ClientCard:
        card = self.repository.get_client_card_by_serial(normalize_serial(serial))
        if not card:
            raise NotFoundError("Card not found")
        return card

    def get(self, card_id: str) -> ClientCard:
        card = self.repository.get_client_card(card_id)
        if not card:
            raise NotFoundError("Card not found")
        return card

    def setup_info(self, serial: str) -> dict:
        return card_setup_info(self.get_by_serial(serial))

    def redirect_info(self, serial: str) -> dict:
        card = self.get_by_serial(serial)
        if card.user_id and card.profile_id:
            profile = self.repository.get_profile(card.profile_id)
            if profile:
                return {"isActivated": True, "profileSlug": profile.slug}
        return {"isActivated": False, "serialNumber": card.serial_number}

    def my_cards(self, user: User) -> list[dict]:
        return [client_card_to_dict(card) for card in self.repository.list_cards_for_users([user.id])]

    # -------------------------------------- activation --------------------------------------
    def activate(self, user: User, serial: str, profile_id: Optional[str] = None) -> dict:
        """Bind a card to the caller and one of the caller's profiles.

        Unowned cards are open to anyone; a card a company assigned to the
        caller can be activated once by that caller. The binding is a
        conditional UPDATE, so when two users race for a card one of them wins.
        """
        card = self.get_by_serial(serial)
        if card.user_id:
            if card.user_id != user.id:
                raise AlreadyActivated()
            if card.status == CardStatus.ACTIVATED.value:
                raise AlreadyActivated("Card already activated")
        if profile_id:
            profile = self.repository.get_profile(profile_id)
            if not profile or profile.user_id != user.id:
                raise AuthorizationError("This profile does not belong to you")
        else:
            profile = self.repository.get_profile_for_user(user.id)
            if not profile:
                raise NotFoundError("Profile not found")
        now = utcnow()
        if not self.repository.activate_card(card.id, user_id=user.id, profile_id=profile.id, activated_at=now):
            raise AlreadyActivated()
        logger.info("Card {} activated by user {}", card.serial_number, user.id)
        card = self.repository.get_client_card(card.id)
        return {
            "card": {
                "serialNumber": card.serial_number,
                "cardType": card.card_type,
                "design": card.design,
                "status": card.status,
                "activatedAt": client_card_to_dict(card)["activatedAt"],
                "profileId": card.profile_id,
            }
        }

    # -------------------------------------- scans --------------------------------------
    def record_scan(
        self,
        serial: str,
        *,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        context: ScanContext | None = None,
    ) -> dict:
        card = self.get_by_serial(serial)
        context = context or ScanContext()
        self.repository.add_scan(
            card_id=card.id,
            serial_number=card.serial_number,
            user_id=card.user_id,
            scan_date=utcnow(),
            ip_address=context.ip_address,
            user_agent=user_agent,
            referer=referer,
            country=context.country,
            city=context.city,
            device=classify_device(user_agent),
            browser=classify_browser(user_agent),
        )
        return {"recorded": True}

    def user_analytics(self, user: User) -> dict:
        since = utcnow() - timedelta(days=ANALYTICS_DAYS)
        return {
            "totalScans": self.repository.count_scans(user_id=user.id),
            "scansByCard": [
                {"serialNumber": serial, "count": count, "lastScan": last}
                for serial, count, last in self.repository.scans_by_card(user.id)
            ],
            "scansByDate": [
                {"date": day, "count": count} for day, count in self.repository.scans_by_day(since=since, user_id=user.id)
            ],
        }

    def card_analytics(self, user: User, card_id: str) -> dict:
        card = self.get(card_id)
        if card.user_id != user.id:
            raise AuthorizationError("Access denied")
        since = utcnow() - timedelta(days=ANALYTICS_DAYS)
        return {
            "totalScans": self.repository.count_scans(card_id=card.id),
            "scansByDate": [
                {"date": day, "count": count} for day, count in self.repository.scans_by_day(since=since, card_id=card.id)
            ],
            "scansByDevice": [
                {"device": device, "count": count} for device, count in self.repository.scans_by_device(card_id=card.id)
            ],
        }

    # -------------------------------------- admin --------------------------------------
    def admin_list(self) -> list[dict]:
        return [client_card_to_dict(card) for card in self.repository.list_client_cards()]

    def admin_by_order(self, order_id: str) -> list[dict]:
        return [client_card_to_dict(card) for card in self.repository.list_client_cards_by_order(order_id)]

    def admin_create(self, payload: ClientCardCreate) -> dict:
        serial = normalize_serial(payload.serial_number)
        if self.repository.serial_exists(serial):
            raise DuplicateSerial()
        status = validate_transition(CardStatus, CardStatus.ORDERED, payload.status)
        values = payload.patch()
        values.update(serial_number=serial, status=status.value, email=str(payload.email).lower())
        try:
            card = self.repository.create_client_card(**values)
        except IntegrityError:
            raise DuplicateSerial() from None
        return client_card_to_dict(card)

    def _stamp_status(self, card: ClientCard, status: CardStatus) -> dict:
        values: dict = {"status": status.value}
        now = utcnow()
        if status is CardStatus.DELIVERED and card.delivery_date is None:
            values["delivery_date"] = now
        if status is CardStatus.ACTIVATED and card.activated_at is None:
            values["activated_at"] = now
        return values

    def admin_update(self, card_id: str, payload: ClientCardUpdate) -> dict:
        card = self.get(card_id)
        values = {k: v for k, v in payload.patch().items() if k in ("tracking_number", "shipping_address")}
        if payload.status is not None:
            status = validate_transition(CardStatus, card.status, payload.status)
            values.update(self._stamp_status(card, status))
        if values:
            card = self.repository.update_client_card(card.id, **values)
            self._notify_shipped(card, values)
        return client_card_to_dict(card)

    def admin_set_status(self, card_id: str, status: str, tracking_number: Optional[str] = None) -> dict:
        card = self.get(card_id)
        target = validate_transition(CardStatus, card.status, status)
        values = self._stamp_status(card, target)
        if tracking_number:
            values["tracking_number"] = tracking_number
        card = self.repository.update_client_card(card.id, **values)
        self._notify_shipped(card, values)
        return client_card_to_dict(card)

    def admin_delete(self, card_id: str) -> None:
        if not self.repository.delete_client_card(card_id):
            raise NotFoundError("Card not found")

    def _notify_shipped(self, card: ClientCard, values: dict) -> None:
        if values.get("status") != CardStatus.SHIPPED.value:
            return
        setup_url = frontend_url(f"/setup/{card.serial_number}", self.settings.frontend_url)
        send_template(
            "order_shipped",
            card.email,
            f"Your card {card.serial_number} has shipped. Activate it at {setup_url}",
            customer_name=card.customer_name,
            serial_number=card.serial_number,
            tracking_number=card.tracking_number,
            setup_url=setup_url,
        )
