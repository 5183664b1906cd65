"""
Company (organization) management.

Employees are users whose company_id points at the company. Capacity limits
(max_employees, max_cards) are checked whenever an employee or a card is added;
lowering a limit later does not evict anyone.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from api.core.config import Settings, get_settings
from api.core.errors import ConflictError, DuplicateEmail, NotFoundError, ValidationError
from api.core.security import hash_password
from api.db.models import Company, User
from api.domain.lifecycle import CardStatus
from api.domain.slugs import company_slug
from api.repositories.sql_repository import SQLRepository
from api.schemas import CompanyCreate, CompanyUpdate, EmployeeAdd
from api.services.auth_service import AuthService
from api.services.serializers import client_card_to_dict, company_to_dict, profile_to_dict, user_to_dict

UNASSIGNED_STATUS = CardStatus.ORDERED


def _addresses(payload) -> dict:
    """Address sub-records are stored with their wire (camelCase) keys."""
    values = {}
    for key in ("address", "billing_address"):
        if key in payload.model_fields_set:
            value = getattr(payload, key)
            values[key] = value.model_dump(by_alias=True) if value is not None else None
    return values


def _brief_user(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "firstName": user.first_name, "lastName": user.last_name, "email": user.email}


@dataclass
class CompanyService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    def _company(self, company_id: str) -> Company:
        company = self.repository.get_company(company_id)
        if not company:
            raise NotFoundError("Company not found")
        return company

    def _employee_ids(self, company_id: str) -> list[str]:
        return [user.id for user in self.repository.list_company_users(company_id)]

    # -------------------------------------- companies --------------------------------------
    def list_companies(self) -> list[dict]:
        result = []
        for company in self.repository.list_companies():
            employee_ids = self._employee_ids(company.id)
            data = company_to_dict(company)
            data["admin"] = _brief_user(self.repository.get_user(company.admin_user_id))
            data["employeeCount"] = len(employee_ids)
            data["cardCount"] = self.repository.count_cards(user_ids=employee_ids)
            result.append(data)
        return result

    def get(self, company_id: str) -> dict:
        company = self._company(company_id)
        data = company_to_dict(company)
        data["admin"] = _brief_user(self.repository.get_user(company.admin_user_id))
        return data

    def create(self, payload: CompanyCreate) -> dict:
        admin = self.repository.get_user(payload.admin_user_id)
        if not admin:
            raise NotFoundError("Admin user not found")
        slug = company_slug(payload.name, payload.slug)
        if not slug:
            raise ValidationError("Company slug cannot be empty")
        if self.repository.company_slug_exists(slug):
            raise ConflictError("A company with this slug already exists")
        values = payload.model_dump()
        values.update(_addresses(payload), slug=slug)
        try:
            company = self.repository.create_company(**values)
        except IntegrityError:
            raise ConflictError("A company with this slug already exists") from None
        self.repository.update_user(admin.id, company_id=company.id)
        logger.info("Company {} created with admin {}", company.slug, admin.id)
        return company_to_dict(company)

    def update(self, company_id: str, payload: CompanyUpdate) -> dict:
        company = self._company(company_id)
        values = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
        values.update(_addresses(payload))
        if "slug" in values:
            values["slug"] = company_slug(company.name, values["slug"])
            if self.repository.company_slug_exists(values["slug"], exclude_id=company.id):
                raise ConflictError("A company with this slug already exists")
        if values:
            company = self.repository.update_company(company.id, **values)
        return company_to_dict(company)

    def delete(self, company_id: str) -> None:
        company = self._company(company_id)
        remaining = self.repository.count_company_users(company.id)
        if remaining:
            raise ValidationError(f"Cannot delete a company that still has {remaining} employee(s)")
        self.repository.delete_company(company.id)

    # -------------------------------------- employees --------------------------------------
    def employees(self, company_id: str) -> list[dict]:
        self._company(company_id)
        employees = self.repository.list_company_users(company_id)
        ids = [user.id for user in employees]
        profiles = self.repository.get_profiles_for_users(ids)
        cards_by_user: dict[str, list] = {}
        for card in self.repository.list_cards_for_users(ids):
            cards_by_user.setdefault(card.user_id, []).append(client_card_to_dict(card))
        result = []
        for user in employees:
            data = user_to_dict(user)
            cards = cards_by_user.get(user.id, [])
            profile = profiles.get(user.id)
            data.update(
                cards=cards,
                cardCount=len(cards),
                profile=profile_to_dict(profile) if profile else None,
                hasProfile=profile is not None,
            )
            result.append(data)
        return result

    def cards(self, company_id: str) -> list[dict]:
        self._company(company_id)
        employees = {user.id: user for user in self.repository.list_company_users(company_id)}
        result = []
        for card in self.repository.list_cards_for_users(list(employees)):
            data = client_card_to_dict(card)
            data["user"] = _brief_user(employees.get(card.user_id))
            result.append(data)
        return result

    def _check_employee_capacity(self, company: Company) -> None:
        if company.max_employees and self.repository.count_company_users(company.id) >= company.max_employees:
            raise ValidationError(f"Employee limit reached ({company.max_employees})")

    def add_employee(self, company_id: str, payload: EmployeeAdd) -> dict:
        company = self._company(company_id)
        if payload.user_id:
            user = self.repository.get_user(payload.user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.company_id:
                raise ValidationError("This user already belongs to a company")
            self._check_employee_capacity(company)
            user = self.repository.update_user(user.id, company_id=company.id)
            return user_to_dict(user)

        self._check_employee_capacity(company)
        if self.repository.get_user_by_email(payload.email):
            raise DuplicateEmail("A user with this email already exists")
        # without a password the employee signs in through forgot-password
        password = payload.password or secrets.token_urlsafe(24)
        user = User(
            email=payload.email,
            password_hash=hash_password(password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            role="user",
            is_active=True,
            company_id=company.id,
        )
        auth = AuthService(repository=self.repository, settings=self.settings)
        try:
            user, _profile = self.repository.create_account(user, auth.new_profile(user.first_name, user.last_name))
        except IntegrityError:
            raise DuplicateEmail("A user with this email already exists") from None
        logger.info("Employee {} created for company {}", user.id, company.slug)
        return user_to_dict(user)

    def remove_employee(self, company_id: str, user_id: str) -> None:
        user = self.repository.get_user(user_id)
        if not user:
            raise NotFoundError("Employee not found")
        if user.company_id != company_id:
            raise ValidationError("This employee does not belong to this company")
        self.repository.update_user(user.id, company_id=None)

    # -------------------------------------- cards --------------------------------------
    def assign_card(self, company_id: str, user_id: str, card_id: str) -> dict:
        company = self._company(company_id)
        card = self.repository.get_client_card(card_id)
        if not card:
            raise NotFoundError("Card not found")
        if card.user_id:
            raise ValidationError("This card is already assigned")
        user = self.repository.get_user(user_id)
        if not user or user.company_id != company.id:
            raise NotFoundError("Employee not found")
        if company.max_cards and self.repository.count_cards(user_ids=self._employee_ids(company.id)) >= company.max_cards:
            raise ValidationError(f"Card limit reached ({company.max_cards})")
        if not self.repository.assign_card(card.id, user.id, status=CardStatus.SHIPPED.value):
            raise ValidationError("This card is already assigned")
        return client_card_to_dict(self.repository.get_client_card(card.id))

    def unassign_card(self, company_id: str, user_id: str, card_id: str) -> dict:
        self._company(company_id)
        card = self.repository.get_client_card(card_id)
        if not card:
            raise NotFoundError("Card not found")
        if card.user_id != user_id:
            raise ValidationError("This card is not assigned to this employee")
        card = self.repository.unassign_card(card.id, status=UNASSIGNED_STATUS.value)
        return client_card_to_dict(card)

    # -------------------------------------- stats --------------------------------------
    def stats(self, company_id: str) -> dict:
        company = self._company(company_id)
        employee_ids = self._employee_ids(company.id)
        total_employees = len(employee_ids)
        total_cards = self.repository.count_cards(user_ids=employee_ids)
        return {
            "totalEmployees": total_employees,
            "activeEmployees": self.repository.count_company_users(company.id, active=True),
            "totalCards": total_cards,
            "activeCards": self.repository.count_cards(user_ids=employee_ids, status=CardStatus.ACTIVATED.value),
            "totalProfiles": self.repository.count_profiles(user_ids=employee_ids),
            "availableSlots": {
                "employees": company.max_employees - total_employees if company.max_employees else None,
                "cards": company.max_cards - total_cards if company.max_cards else None,
            },
        }
