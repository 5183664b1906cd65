"""SQLAlchemy models for every stored resource.

Nested sub-records (profile links, social links, theme, payment cards, plan
features, addresses) are kept in JSON columns and validated by the pydantic
schemas before they are written.
"""
from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    JSON,
)
from sqlalchemy.orm import relationship

from api.core.utils import utcnow

from .session import Base


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(16), default="user", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    company_id = Column(String(32), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    profiles = relationship("Profile", back_populates="user", cascade="all,delete-orphan", passive_deletes=True)
    finance = relationship("UserFinance", uselist=False, cascade="all,delete-orphan", passive_deletes=True)


class Profile(Base):
    __tablename__ = "profiles"

    # one profile per user is enforced when profiles are created, not by a constraint
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    display_name = Column(String(200), nullable=False)
    bio = Column(String(500), nullable=True)
    avatar_url = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    links = Column(JSON, default=list, nullable=False)
    social_links = Column(JSON, default=list, nullable=False)
    theme = Column(JSON, default=dict, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    template_id = Column(String(32), ForeignKey("templates.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="profiles")


class Template(Base):
    __tablename__ = "templates"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False, default="")
    thumbnail_url = Column(Text, nullable=True)
    theme = Column(JSON, default=dict, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class ClientCard(Base):
    __tablename__ = "client_cards"

    id = Column(String(32), primary_key=True, default=new_id)
    serial_number = Column(String(64), unique=True, nullable=False, index=True)
    order_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    profile_id = Column(String(32), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    card_type = Column(String(100), nullable=False)
    design = Column(String(100), nullable=False)
    status = Column(String(32), default="ordered", nullable=False)
    shipping_address = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    order_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    activated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class CardScan(Base):
    __tablename__ = "card_scans"

    id = Column(String(32), primary_key=True, default=new_id)
    card_id = Column(String(32), ForeignKey("client_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(String(64), nullable=False)
    # owner of the card when the scan happened
    user_id = Column(String(32), nullable=True, index=True)
    scan_date = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    referer = Column(Text, nullable=True)
    country = Column(String(64), nullable=True)
    city = Column(String(120), nullable=True)
    device = Column(String(16), nullable=True)
    browser = Column(String(16), nullable=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    items = Column(JSON, default=list, nullable=False)
    total = Column(Float, default=0.0, nullable=False)
    status = Column(String(16), default="pending", nullable=False, index=True)
    card_design = Column(String(100), nullable=True)
    shipping_address = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class ProductCard(Base):
    __tablename__ = "product_cards"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    type = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    image = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    logo = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    industry = Column(String(120), nullable=True)
    website = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)
    admin_user_id = Column(String(32), nullable=False)
    subscription_id = Column(String(32), nullable=True)
    max_employees = Column(Integer, default=10, nullable=False)
    max_cards = Column(Integer, default=10, nullable=False)
    status = Column(String(16), default="active", nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class SubscriptionPlan(Base):
    __tablename__ = "subscriptions"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(120), nullable=False)
    slug = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    currency = Column(String(8), default="EUR", nullable=False)
    interval = Column(String(16), default="monthly", nullable=False)
    features = Column(JSON, default=list, nullable=False)
    max_profiles = Column(Integer, default=1, nullable=False)
    max_cards = Column(Integer, default=1, nullable=False)
    custom_domain = Column(Boolean, default=False, nullable=False)
    analytics = Column(Boolean, default=False, nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subscription_id = Column(String(32), ForeignKey("subscriptions.id"), nullable=False, index=True)
    status = Column(String(16), default="active", nullable=False)
    start_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    auto_renew = Column(Boolean, default=True, nullable=False)
    last_payment_date = Column(DateTime(timezone=True), nullable=True)
    next_payment_date = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class UserFinance(Base):
    __tablename__ = "user_finances"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    payment_cards = Column(JSON, default=list, nullable=False)
    subscription = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class Bill(Base):
    __tablename__ = "bills"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(8), default="EUR", nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(16), default="pending", nullable=False)
    invoice_url = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PhysicalCard(Base):
    __tablename__ = "physical_cards"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(16), default="classic", nullable=False)
    status = Column(String(16), default="ordered", nullable=False)
    tracking_number = Column(String(100), nullable=True)
    ordered_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
