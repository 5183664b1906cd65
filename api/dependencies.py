"""FastAPI dependencies that build services from the app-level settings and repository."""
from __future__ import annotations

from fastapi import Request

from api.core.config import Settings, get_settings
from api.repositories.sql_repository import SQLRepository
from api.services.analytics_service import AnalyticsService
from api.services.auth_service import AuthService
from api.services.card_service import CardService
from api.services.commerce_service import CommerceService
from api.services.company_service import CompanyService
from api.services.finance_service import FinanceService
from api.services.profile_service import ProfileService
from api.services.subscription_service import SubscriptionService
from api.services.template_service import TemplateService
from api.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_repository(request: Request) -> SQLRepository:
    repository = getattr(request.app.state, "repository", None)
    return repository if repository is not None else SQLRepository()


def _build(service_cls, request: Request):
    return service_cls(repository=get_repository(request), settings=get_app_settings(request))


def auth_service(request: Request) -> AuthService:
    return _build(AuthService, request)


def user_service(request: Request) -> UserService:
    return _build(UserService, request)


def profile_service(request: Request) -> ProfileService:
    return _build(ProfileService, request)


def template_service(request: Request) -> TemplateService:
    return _build(TemplateService, request)


def card_service(request: Request) -> CardService:
    return _build(CardService, request)


def commerce_service(request: Request) -> CommerceService:
    return _build(CommerceService, request)


def subscription_service(request: Request) -> SubscriptionService:
    return _build(SubscriptionService, request)


def finance_service(request: Request) -> FinanceService:
    return FinanceService(repository=get_repository(request))


def company_service(request: Request) -> CompanyService:
    return _build(CompanyService, request)


def analytics_service(request: Request) -> AnalyticsService:
    return _build(AnalyticsService, request)
