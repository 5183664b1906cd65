"""
Request payloads and typed sub-records.

JSON keys are camelCase on the wire; fields are snake_case in Python and the
`CamelModel` alias generator maps between the two. Sub-records stored inside
JSON columns (links, social links, theme, payment cards, addresses) are dumped
with `by_alias=True` so the stored document has the same shape as the API.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def patch(self) -> dict:
        """Only the fields the client actually sent, snake_case keys."""
        return self.model_dump(exclude_unset=True)


def _lower_email(value: str) -> str:
    return value.strip().lower()


# -------------------------- auth / users --------------------------
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None

    normalize_email = field_validator("email")(_lower_email)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    normalize_email = field_validator("email")(_lower_email)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    normalize_email = field_validator("email")(_lower_email)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserSelfUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = None


class AdminUserUpdate(UserSelfUpdate):
    email: Optional[EmailStr] = None
    role: Optional[Literal["user", "admin"]] = None
    is_active: Optional[bool] = None
    company_id: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return _lower_email(value) if value else value


class RoleUpdate(CamelModel):
    role: Literal["user", "admin"]


# -------------------------- profiles --------------------------
ButtonStyle = Literal["rounded", "square", "pill"]


class ProfileLink(CamelModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    icon: Optional[str] = None
    is_active: bool = True
    order: int = 0


class SocialLink(CamelModel):
    platform: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    is_active: bool = True


class Theme(CamelModel):
    background_color: str = "#0a0a0a"
    text_color: str = "#ffffff"
    button_color: str = "#d4af37"
    link_block_color: Optional[str] = None
    button_text_color: str = "#0a0a0a"
    button_style: ButtonStyle = "rounded"
    font_family: str = "Inter"
    name_font_size: Optional[int] = None
    bio_font_size: Optional[int] = None
    link_font_size: Optional[int] = None


class ThemePatch(CamelModel):
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    button_color: Optional[str] = None
    link_block_color: Optional[str] = None
    button_text_color: Optional[str] = None
    button_style: Optional[ButtonStyle] = None
    font_family: Optional[str] = None
    name_font_size: Optional[int] = None
    bio_font_size: Optional[int] = None
    link_font_size: Optional[int] = None


def default_theme() -> dict:
    return Theme().model_dump(by_alias=True)


class ProfileUpdate(CamelModel):
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    links: Optional[List[ProfileLink]] = None
    social_links: Optional[List[SocialLink]] = None
    theme: Optional[ThemePatch] = None


class AdminProfileUpdate(ProfileUpdate):
    slug: Optional[str] = None
    is_public: Optional[bool] = None


class SlugUpdate(CamelModel):
    slug: str = Field(..., min_length=1)


class LinkCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1)
    icon: Optional[str] = None
    is_active: bool = True
    order: Optional[int] = None


class LinkUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    url: Optional[str] = Field(default=None, min_length=1)
    icon: Optional[str] = None
    is_active: Optional[bool] = None
    order: Optional[int] = None


class ReorderLinks(CamelModel):
    link_ids: List[str]


# -------------------------- templates --------------------------
class TemplateCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str = ""
    thumbnail_url: Optional[str] = None
    theme: Theme = Field(default_factory=Theme)
    is_active: bool = True
    is_premium: bool = False


class TemplateUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    theme: Optional[ThemePatch] = None
    is_active: Optional[bool] = None
    is_premium: Optional[bool] = None


# -------------------------- cards --------------------------
class ActivateCardRequest(CamelModel):
    serial_number: str = Field(..., min_length=1)
    profile_id: Optional[str] = None


class ScanRequest(CamelModel):
    serial_number: str = Field(..., min_length=1)
    user_agent: Optional[str] = None
    referer: Optional[str] = None


class ClientCardCreate(CamelModel):
    serial_number: str = Field(..., min_length=1, max_length=64)
    order_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    email: EmailStr
    card_type: str = Field(..., min_length=1)
    design: str = Field(..., min_length=1)
    status: str = "ordered"
    shipping_address: Optional[str] = None
    tracking_number: Optional[str] = None


class ClientCardUpdate(CamelModel):
    tracking_number: Optional[str] = None
    shipping_address: Optional[str] = None
    status: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str = Field(..., min_length=1)
    tracking_number: Optional[str] = None


# -------------------------- commerce --------------------------
class OrderCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    email: EmailStr
    items: List[str] = Field(default_factory=list)
    total: float = Field(..., ge=0)
    status: str = "pending"
    card_design: Optional[str] = None
    shipping_address: Optional[str] = None
    tracking_number: Optional[str] = None


class ProductCardCreate(CamelModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    stock: int = Field(default=0, ge=0)
    image: Optional[str] = None
    active: bool = True
    description: Optional[str] = None


class ProductCardUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    stock: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None
    active: Optional[bool] = None
    description: Optional[str] = None


PlanInterval = Literal["monthly", "yearly", "lifetime"]


class PlanCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    description: str = ""
    price: float = Field(..., ge=0)
    currency: str = "EUR"
    interval: PlanInterval = "monthly"
    features: List[str] = Field(default_factory=list)
    max_profiles: int = Field(default=1, ge=0)
    max_cards: int = Field(default=1, ge=0)
    custom_domain: bool = False
    analytics: bool = False
    priority: int = 0
    active: bool = True

    @field_validator("slug")
    @classmethod
    def lower_slug(cls, value: str) -> str:
        return value.lower()


class PlanUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    interval: Optional[PlanInterval] = None
    features: Optional[List[str]] = None
    max_profiles: Optional[int] = Field(default=None, ge=0)
    max_cards: Optional[int] = Field(default=None, ge=0)
    custom_domain: Optional[bool] = None
    analytics: Optional[bool] = None
    priority: Optional[int] = None
    active: Optional[bool] = None


class UserSubscriptionCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    subscription_id: str = Field(..., min_length=1)
    auto_renew: bool = True
    payment_method: Optional[str] = None
    end_date: Optional[datetime] = None


class UserSubscriptionUpdate(CamelModel):
    status: Optional[str] = None
    auto_renew: Optional[bool] = None
    end_date: Optional[datetime] = None
    next_payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None


class PaymentCardCreate(CamelModel):
    last4: str = Field(..., min_length=4, max_length=4)
    brand: str = Field(..., min_length=1)
    expiry_month: int = Field(..., ge=1, le=12)
    expiry_year: int = Field(..., ge=2024)
    is_default: bool = False

    @field_validator("last4")
    @classmethod
    def digits_only(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("last4 must contain 4 digits")
        return value


class PhysicalCardOrder(CamelModel):
    type: Literal["classic", "premium", "metal"]


class PhysicalCardUpdate(CamelModel):
    status: Literal["ordered", "processing", "shipped", "delivered"]
    tracking_number: Optional[str] = None


class BillCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    currency: str = "EUR"
    description: str = Field(..., min_length=1)
    status: Literal["pending", "paid", "failed", "refunded"] = "pending"
    invoice_url: Optional[str] = None


# -------------------------- companies --------------------------
class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CompanyCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    admin_user_id: str = Field(..., min_length=1)
    logo: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    billing_address: Optional[Address] = None
    subscription_id: Optional[str] = None
    max_employees: int = Field(default=10, ge=0)
    max_cards: int = Field(default=10, ge=0)
    status: Literal["active", "suspended", "inactive"] = "active"
    notes: Optional[str] = None


class CompanyUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[Address] = None
    billing_address: Optional[Address] = None
    subscription_id: Optional[str] = None
    max_employees: Optional[int] = Field(default=None, ge=0)
    max_cards: Optional[int] = Field(default=None, ge=0)
    status: Optional[Literal["active", "suspended", "inactive"]] = None
    notes: Optional[str] = None


class EmployeeAdd(CamelModel):
    """Either an existing user id, or the identity of a new user."""

    user_id: Optional[str] = None
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)

    @model_validator(mode="after")
    def either_user_or_identity(self):
        if self.user_id:
            return self
        if not (self.email and self.first_name and self.last_name):
            raise ValueError("email, firstName and lastName are required")
        self.email = _lower_email(self.email)
        return self


class CardAssign(CamelModel):
    card_id: str = Field(..., min_length=1)
