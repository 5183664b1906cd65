"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import and_, delete, func, or_, select, update

from api.core.utils import utcnow
from api.db.models import (
    Bill,
    CardScan,
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
from api.db.session import get_session


def _window(stmt, column, since: Optional[datetime], until: Optional[datetime]):
    if since is not None:
        stmt = stmt.where(column >= since)
    if until is not None:
        stmt = stmt.where(column < until)
    return stmt


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- generic --------------------------
    def _get(self, model, entity_id: str):
        if not entity_id:
            return None
        with get_session() as session:
            return session.get(model, entity_id)

    def _add(self, entity):
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def _update(self, model, entity_id: str, values: dict):
        with get_session() as session:
            entity = session.get(model, entity_id)
            if entity is None:
                return None
            for key, value in values.items():
                setattr(entity, key, value)
            session.commit()
            session.refresh(entity)
            return entity

    def _delete(self, model, entity_id: str) -> bool:
        with get_session() as session:
            result = session.execute(delete(model).where(model.id == entity_id))
            session.commit()
            return bool(result.rowcount)

    def _all(self, stmt) -> list:
        with get_session() as session:
            return list(session.scalars(stmt).all())

    def _first(self, stmt):
        with get_session() as session:
            return session.scalars(stmt.limit(1)).first()

    def _scalar(self, stmt):
        with get_session() as session:
            return session.execute(stmt).scalar()

    def _rows(self, stmt) -> list:
        with get_session() as session:
            return list(session.execute(stmt).all())

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._first(select(User).where(User.email == (email or "").strip().lower()))

    def consume_reset_token(self, token_hash: str, *, now: datetime, password_hash: str) -> Optional[str]:
        """Swap the password and clear the token in one conditional UPDATE.

        Returns the user id, or None when the token is unknown, expired or was
        already used by a concurrent request.
        """
        with get_session() as session:
            user_id = session.execute(
                select(User.id).where(User.reset_token_hash == token_hash, User.reset_token_expires_at > now)
            ).scalar()
            if user_id is None:
                return None
            stmt = (
                update(User)
                .where(
                    User.id == user_id,
                    User.reset_token_hash == token_hash,
                    User.reset_token_expires_at > now,
                )
                .values(
                    password_hash=password_hash,
                    reset_token_hash=None,
                    reset_token_expires_at=None,
                    updated_at=utcnow(),
                )
            )
            result = session.execute(stmt)
            session.commit()
            return user_id if result.rowcount == 1 else None

    def create_account(self, user: User, profile: Profile) -> tuple[User, Profile]:
        """Insert a user, its default profile and an empty finance record in one transaction."""
        with get_session() as session:
            session.add(user)
            session.flush()
            profile.user_id = user.id
            session.add(profile)
            session.add(UserFinance(user_id=user.id, payment_cards=[]))
            session.commit()
            session.refresh(user)
            session.refresh(profile)
            return user, profile

    def update_user(self, user_id: str, **values) -> Optional[User]:
        return self._update(User, user_id, values)

    def delete_user(self, user_id: str) -> bool:
        """Hard delete; profiles, finance, bills and bindings go with the user."""
        with get_session() as session:
            user = session.get(User, user_id)
            if user is None:
                return False
            session.delete(user)
            session.commit()
            return True

    def list_users(self, *, page: int = 1, limit: int = 20, search: str | None = None) -> tuple[list[User], int]:
        stmt = select(User)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )
        total = self._scalar(select(func.count()).select_from(stmt.subquery())) or 0
        items = self._all(stmt.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit))
        return items, total

    def get_users(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        return {user.id: user for user in self._all(select(User).where(User.id.in_(ids)))}

    def count_users(self, *, active: bool | None = None, since=None, until=None) -> int:
        stmt = select(func.count(User.id))
        if active is not None:
            stmt = stmt.where(User.is_active.is_(active))
        stmt = _window(stmt, User.created_at, since, until)
        return self._scalar(stmt) or 0

    def count_returning_users(self, *, since: datetime) -> int:
        """Users created before `since` who came back (updated their record) after it."""
        stmt = select(func.count(User.id)).where(User.created_at < since, User.updated_at >= since)
        return self._scalar(stmt) or 0

    def list_company_users(self, company_id: str) -> list[User]:
        return self._all(select(User).where(User.company_id == company_id).order_by(User.created_at))

    def count_company_users(self, company_id: str, *, active: bool | None = None) -> int:
        stmt = select(func.count(User.id)).where(User.company_id == company_id)
        if active is not None:
            stmt = stmt.where(User.is_active.is_(active))
        return self._scalar(stmt) or 0

    # -------------------------- profiles --------------------------
    def get_profile(self, profile_id: str) -> Optional[Profile]:
        return self._get(Profile, profile_id)

    def get_profile_by_slug(self, slug: str) -> Optional[Profile]:
        return self._first(select(Profile).where(Profile.slug == (slug or "").strip().lower()))

    def get_profile_for_user(self, user_id: str) -> Optional[Profile]:
        return self._first(select(Profile).where(Profile.user_id == user_id).order_by(Profile.created_at))

    def get_profiles_for_users(self, user_ids: Iterable[str]) -> dict[str, Profile]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result: dict[str, Profile] = {}
        for profile in self._all(select(Profile).where(Profile.user_id.in_(ids)).order_by(Profile.created_at)):
            result.setdefault(profile.user_id, profile)
        return result

    def get_profiles(self, profile_ids: Iterable[str]) -> dict[str, Profile]:
        ids = [pid for pid in set(profile_ids) if pid]
        if not ids:
            return {}
        return {profile.id: profile for profile in self._all(select(Profile).where(Profile.id.in_(ids)))}

    def slug_exists(self, slug: str, *, exclude_profile_id: str | None = None) -> bool:
        stmt = select(Profile.id).where(Profile.slug == slug)
        if exclude_profile_id:
            stmt = stmt.where(Profile.id != exclude_profile_id)
        return self._first(stmt) is not None

    def update_profile(self, profile_id: str, **values) -> Optional[Profile]:
        return self._update(Profile, profile_id, values)

    def set_profiles_public_for_user(self, user_id: str, is_public: bool) -> None:
        with get_session() as session:
            session.execute(
                update(Profile).where(Profile.user_id == user_id).values(is_public=is_public, updated_at=utcnow())
            )
            session.commit()

    def list_profiles(self) -> list[Profile]:
        return self._all(select(Profile).order_by(Profile.created_at.desc()))

    def delete_profile(self, profile_id: str) -> bool:
        return self._delete(Profile, profile_id)

    def count_profiles(self, *, user_ids: Sequence[str] | None = None, since=None, until=None) -> int:
        stmt = select(func.count(Profile.id))
        if user_ids is not None:
            if not user_ids:
                return 0
            stmt = stmt.where(Profile.user_id.in_(list(user_ids)))
        stmt = _window(stmt, Profile.created_at, since, until)
        return self._scalar(stmt) or 0

    # -------------------------- templates --------------------------
    def list_templates(self, *, active_only: bool = True) -> list[Template]:
        stmt = select(Template)
        if active_only:
            stmt = stmt.where(Template.is_active.is_(True))
        return self._all(stmt.order_by(Template.is_premium, Template.name))

    def get_template(self, template_id: str) -> Optional[Template]:
        return self._get(Template, template_id)

    def create_template(self, **values) -> Template:
        return self._add(Template(**values))

    def update_template(self, template_id: str, **values) -> Optional[Template]:
        return self._update(Template, template_id, values)

    def count_templates(self) -> int:
        return self._scalar(select(func.count(Template.id))) or 0

    # -------------------------- client cards --------------------------
    def get_client_card(self, card_id: str) -> Optional[ClientCard]:
        return self._get(ClientCard, card_id)

    def get_client_card_by_serial(self, serial: str) -> Optional[ClientCard]:
        return self._first(select(ClientCard).where(ClientCard.serial_number == (serial or "").strip().upper()))

    def serial_exists(self, serial: str) -> bool:
        return self.get_client_card_by_serial(serial) is not None

    def create_client_card(self, **values) -> ClientCard:
        return self._add(ClientCard(**values))

    def update_client_card(self, card_id: str, **values) -> Optional[ClientCard]:
        return self._update(ClientCard, card_id, values)

    def delete_client_card(self, card_id: str) -> bool:
        return self._delete(ClientCard, card_id)

    def list_client_cards(self) -> list[ClientCard]:
        return self._all(select(ClientCard).order_by(ClientCard.created_at.desc()))

    def list_client_cards_by_order(self, order_id: str) -> list[ClientCard]:
        return self._all(select(ClientCard).where(ClientCard.order_id == order_id).order_by(ClientCard.serial_number))

    def list_cards_for_users(self, user_ids: Sequence[str]) -> list[ClientCard]:
        if not user_ids:
            return []
        stmt = select(ClientCard).where(ClientCard.user_id.in_(list(user_ids))).order_by(ClientCard.created_at.desc())
        return self._all(stmt)

    def count_cards(self, *, user_ids: Sequence[str] | None = None, status: str | None = None) -> int:
        stmt = select(func.count(ClientCard.id))
        if user_ids is not None:
            if not user_ids:
                return 0
            stmt = stmt.where(ClientCard.user_id.in_(list(user_ids)))
        if status is not None:
            stmt = stmt.where(ClientCard.status == status)
        return self._scalar(stmt) or 0

    def count_card_holders(self, *, status: str | None = None) -> int:
        stmt = select(func.count(func.distinct(ClientCard.user_id))).where(ClientCard.user_id.is_not(None))
        if status is not None:
            stmt = stmt.where(ClientCard.status == status)
        return self._scalar(stmt) or 0

    def first_user_created_at(self) -> Optional[datetime]:
        return self._scalar(select(func.min(User.created_at)))

    def activate_card(self, card_id: str, *, user_id: str, profile_id: str, activated_at: datetime) -> bool:
        """Bind a card in a single conditional UPDATE.

        The card must be unowned, or assigned to `user_id` (company flow) and
        not activated yet. Returns False otherwise; the row is left untouched.
        """
        with get_session() as session:
            stmt = (
                update(ClientCard)
                .where(
                    ClientCard.id == card_id,
                    or_(
                        ClientCard.user_id.is_(None),
                        and_(ClientCard.user_id == user_id, ClientCard.status != "activated"),
                    ),
                )
                .values(
                    user_id=user_id,
                    profile_id=profile_id,
                    status="activated",
                    activated_at=activated_at,
                    updated_at=activated_at,
                )
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def assign_card(self, card_id: str, user_id: str, *, status: str) -> bool:
        """Company assignment; same guard as activation so a card is never double-bound."""
        with get_session() as session:
            stmt = (
                update(ClientCard)
                .where(ClientCard.id == card_id, ClientCard.user_id.is_(None))
                .values(user_id=user_id, status=status, updated_at=utcnow())
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def unassign_card(self, card_id: str, *, status: str) -> Optional[ClientCard]:
        return self._update(
            ClientCard, card_id, {"user_id": None, "profile_id": None, "activated_at": None, "status": status}
        )

    # -------------------------- scans --------------------------
    def add_scan(self, **values) -> CardScan:
        return self._add(CardScan(**values))

    def count_scans(
        self, *, user_id: str | None = None, card_id: str | None = None, since=None, until=None
    ) -> int:
        stmt = select(func.count(CardScan.id))
        if user_id is not None:
            stmt = stmt.where(CardScan.user_id == user_id)
        if card_id is not None:
            stmt = stmt.where(CardScan.card_id == card_id)
        stmt = _window(stmt, CardScan.scan_date, since, until)
        return self._scalar(stmt) or 0

    def scans_by_card(self, user_id: str) -> list[tuple[str, int, datetime]]:
        stmt = (
            select(CardScan.serial_number, func.count(CardScan.id), func.max(CardScan.scan_date))
            .where(CardScan.user_id == user_id)
            .group_by(CardScan.serial_number)
            .order_by(func.count(CardScan.id).desc())
        )
        return [tuple(row) for row in self._rows(stmt)]

    def scans_by_day(
        self, *, since: datetime, user_id: str | None = None, card_id: str | None = None
    ) -> list[tuple[str, int]]:
        day = func.date(CardScan.scan_date)
        stmt = select(day, func.count(CardScan.id)).where(CardScan.scan_date >= since)
        if user_id is not None:
            stmt = stmt.where(CardScan.user_id == user_id)
        if card_id is not None:
            stmt = stmt.where(CardScan.card_id == card_id)
        stmt = stmt.group_by(day).order_by(day)
        return [(str(row[0]), row[1]) for row in self._rows(stmt)]

    def scans_by_device(self, *, card_id: str | None = None, since=None, until=None) -> list[tuple[str, int]]:
        stmt = select(CardScan.device, func.count(CardScan.id))
        if card_id is not None:
            stmt = stmt.where(CardScan.card_id == card_id)
        stmt = _window(stmt, CardScan.scan_date, since, until)
        stmt = stmt.group_by(CardScan.device).order_by(func.count(CardScan.id).desc())
        return [(row[0] or "unknown", row[1]) for row in self._rows(stmt)]

    def scans_by_country(self, *, since=None, until=None, limit: int = 5) -> list[tuple[str, int]]:
        stmt = select(CardScan.country, func.count(CardScan.id)).where(CardScan.country.is_not(None))
        stmt = _window(stmt, CardScan.scan_date, since, until)
        stmt = stmt.group_by(CardScan.country).order_by(func.count(CardScan.id).desc()).limit(limit)
        return [(row[0], row[1]) for row in self._rows(stmt)]

    def scans_by_profile(self, *, since=None, until=None, limit: int | None = None) -> list[tuple[str, int]]:
        """Scan counts per profile, through the profile bound to each scanned card."""
        stmt = (
            select(ClientCard.profile_id, func.count(CardScan.id))
            .join(ClientCard, ClientCard.id == CardScan.card_id)
            .where(ClientCard.profile_id.is_not(None))
        )
        stmt = _window(stmt, CardScan.scan_date, since, until)
        stmt = stmt.group_by(ClientCard.profile_id).order_by(func.count(CardScan.id).desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return [(row[0], row[1]) for row in self._rows(stmt)]

    # -------------------------- orders --------------------------
    def list_orders(self, *, status: str | None = None) -> list[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        return self._all(stmt.order_by(Order.created_at.desc()))

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._get(Order, order_id)

    def create_order(self, **values) -> Order:
        return self._add(Order(**values))

    def update_order(self, order_id: str, **values) -> Optional[Order]:
        return self._update(Order, order_id, values)

    def delete_order(self, order_id: str) -> bool:
        return self._delete(Order, order_id)

    def count_orders(self, *, status: str | None = None, since=None, until=None) -> int:
        stmt = select(func.count(Order.id))
        if status is not None:
            stmt = stmt.where(Order.status == status)
        stmt = _window(stmt, Order.created_at, since, until)
        return self._scalar(stmt) or 0

    def completed_revenue(self, *, since=None, until=None) -> float:
        stmt = select(func.coalesce(func.sum(Order.total), 0)).where(Order.status == "completed")
        stmt = _window(stmt, Order.created_at, since, until)
        return float(self._scalar(stmt) or 0)

    def revenue_by_day(self, *, since: datetime) -> list[tuple[str, float]]:
        day = func.date(Order.created_at)
        stmt = (
            select(day, func.sum(Order.total))
            .where(Order.status == "completed", Order.created_at >= since)
            .group_by(day)
        )
        return [(str(row[0]), float(row[1] or 0)) for row in self._rows(stmt)]

    def users_by_day(self, *, since: datetime) -> list[tuple[str, int]]:
        day = func.date(User.created_at)
        stmt = select(day, func.count(User.id)).where(User.created_at >= since).group_by(day)
        return [(str(row[0]), row[1]) for row in self._rows(stmt)]

    # -------------------------- product catalog --------------------------
    def list_products(self) -> list[ProductCard]:
        return self._all(select(ProductCard).order_by(ProductCard.created_at.desc()))

    def get_product(self, product_id: str) -> Optional[ProductCard]:
        return self._get(ProductCard, product_id)

    def create_product(self, **values) -> ProductCard:
        return self._add(ProductCard(**values))

    def update_product(self, product_id: str, **values) -> Optional[ProductCard]:
        return self._update(ProductCard, product_id, values)

    def delete_product(self, product_id: str) -> bool:
        return self._delete(ProductCard, product_id)

    def low_stock_products(self, threshold: int) -> list[ProductCard]:
        stmt = (
            select(ProductCard)
            .where(ProductCard.stock < threshold, ProductCard.active.is_(True))
            .order_by(ProductCard.stock.asc(), ProductCard.name)
        )
        return self._all(stmt)

    def count_low_stock(self, threshold: int) -> int:
        stmt = select(func.count(ProductCard.id)).where(ProductCard.stock < threshold, ProductCard.active.is_(True))
        return self._scalar(stmt) or 0

    def count_products(self) -> int:
        return self._scalar(select(func.count(ProductCard.id))) or 0

    # -------------------------- companies --------------------------
    def list_companies(self) -> list[Company]:
        return self._all(select(Company).order_by(Company.created_at.desc()))

    def get_company(self, company_id: str) -> Optional[Company]:
        return self._get(Company, company_id)

    def company_slug_exists(self, slug: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(Company.id).where(Company.slug == slug)
        if exclude_id:
            stmt = stmt.where(Company.id != exclude_id)
        return self._first(stmt) is not None

    def create_company(self, **values) -> Company:
        return self._add(Company(**values))

    def update_company(self, company_id: str, **values) -> Optional[Company]:
        return self._update(Company, company_id, values)

    def delete_company(self, company_id: str) -> bool:
        return self._delete(Company, company_id)

    # -------------------------- subscription plans --------------------------
    def list_plans(self, *, active_only: bool = False) -> list[SubscriptionPlan]:
        stmt = select(SubscriptionPlan)
        if active_only:
            stmt = stmt.where(SubscriptionPlan.active.is_(True))
        return self._all(stmt.order_by(SubscriptionPlan.priority.desc(), SubscriptionPlan.price))

    def get_plan(self, plan_id: str) -> Optional[SubscriptionPlan]:
        return self._get(SubscriptionPlan, plan_id)

    def plan_slug_exists(self, slug: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(SubscriptionPlan.id).where(SubscriptionPlan.slug == slug)
        if exclude_id:
            stmt = stmt.where(SubscriptionPlan.id != exclude_id)
        return self._first(stmt) is not None

    def create_plan(self, **values) -> SubscriptionPlan:
        return self._add(SubscriptionPlan(**values))

    def update_plan(self, plan_id: str, **values) -> Optional[SubscriptionPlan]:
        return self._update(SubscriptionPlan, plan_id, values)

    def delete_plan(self, plan_id: str) -> bool:
        return self._delete(SubscriptionPlan, plan_id)

    def count_plans(self, *, active_only: bool = False) -> int:
        stmt = select(func.count(SubscriptionPlan.id))
        if active_only:
            stmt = stmt.where(SubscriptionPlan.active.is_(True))
        return self._scalar(stmt) or 0

    # -------------------------- user subscriptions --------------------------
    def list_user_subscriptions(
        self, *, subscription_id: str | None = None, status: str | None = None, user_id: str | None = None
    ) -> list[UserSubscription]:
        stmt = select(UserSubscription)
        if subscription_id is not None:
            stmt = stmt.where(UserSubscription.subscription_id == subscription_id)
        if status is not None:
            stmt = stmt.where(UserSubscription.status == status)
        if user_id is not None:
            stmt = stmt.where(UserSubscription.user_id == user_id)
        return self._all(stmt.order_by(UserSubscription.created_at.desc()))

    def get_user_subscription(self, binding_id: str) -> Optional[UserSubscription]:
        return self._get(UserSubscription, binding_id)

    def create_user_subscription(self, **values) -> UserSubscription:
        return self._add(UserSubscription(**values))

    def update_user_subscription(self, binding_id: str, **values) -> Optional[UserSubscription]:
        return self._update(UserSubscription, binding_id, values)

    def count_user_subscriptions(self, *, subscription_id: str | None = None, status: str | None = None) -> int:
        stmt = select(func.count(UserSubscription.id))
        if subscription_id is not None:
            stmt = stmt.where(UserSubscription.subscription_id == subscription_id)
        if status is not None:
            stmt = stmt.where(UserSubscription.status == status)
        return self._scalar(stmt) or 0

    def active_bindings_with_plans(self) -> list[tuple[UserSubscription, SubscriptionPlan]]:
        stmt = (
            select(UserSubscription, SubscriptionPlan)
            .join(SubscriptionPlan, SubscriptionPlan.id == UserSubscription.subscription_id)
            .where(UserSubscription.status == "active")
        )
        return [(row[0], row[1]) for row in self._rows(stmt)]

    # -------------------------- finances --------------------------
    def get_finance(self, user_id: str) -> Optional[UserFinance]:
        return self._first(select(UserFinance).where(UserFinance.user_id == user_id))

    def ensure_finance(self, user_id: str) -> UserFinance:
        finance = self.get_finance(user_id)
        if finance is None:
            finance = self._add(UserFinance(user_id=user_id, payment_cards=[]))
        return finance

    def save_payment_cards(self, user_id: str, cards: list[dict]) -> UserFinance:
        finance = self.ensure_finance(user_id)
        # JSON columns only persist on reassignment
        return self._update(UserFinance, finance.id, {"payment_cards": [dict(card) for card in cards]})

    def set_finance_subscription(self, user_id: str, snapshot: dict | None) -> UserFinance:
        finance = self.ensure_finance(user_id)
        return self._update(UserFinance, finance.id, {"subscription": snapshot})

    def list_bills(self, user_id: str, *, page: int = 1, limit: int = 10) -> tuple[list[Bill], int]:
        total = self._scalar(select(func.count(Bill.id)).where(Bill.user_id == user_id)) or 0
        stmt = (
            select(Bill)
            .where(Bill.user_id == user_id)
            .order_by(Bill.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return self._all(stmt), total

    def create_bill(self, **values) -> Bill:
        return self._add(Bill(**values))

    def list_physical_cards(self, user_id: str) -> list[PhysicalCard]:
        stmt = select(PhysicalCard).where(PhysicalCard.user_id == user_id).order_by(PhysicalCard.ordered_at.desc())
        return self._all(stmt)

    def get_physical_card(self, card_id: str) -> Optional[PhysicalCard]:
        return self._get(PhysicalCard, card_id)

    def create_physical_card(self, **values) -> PhysicalCard:
        return self._add(PhysicalCard(**values))

    def update_physical_card(self, card_id: str, **values) -> Optional[PhysicalCard]:
        return self._update(PhysicalCard, card_id, values)
