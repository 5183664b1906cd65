#!/usr/bin/env python3
"""
Seed the product catalog, subscription plans and profile templates when their
tables are empty, and optionally create an admin account.

Usage:
  python scripts/seed.py [--admin-email admin@example.com --admin-password secret123]
"""
from __future__ import annotations

import argparse
import sys

from api.core.errors import DuplicateEmail
from api.db.session import init_db
from api.repositories.sql_repository import SQLRepository
from api.services.auth_service import AuthService

PRODUCTS = [
    {"name": "Premium NFC Card", "type": "Premium", "price": 99, "stock": 45, "active": True,
     "description": "High-end NFC card with a premium finish"},
    {"name": "Standard Card", "type": "Standard", "price": 79, "stock": 120, "active": True,
     "description": "Quality standard NFC card"},
    {"name": "Luxury Gold Card", "type": "Luxury", "price": 149, "stock": 12, "active": True,
     "description": "Luxury card with a gold finish"},
    {"name": "Black Edition Card", "type": "Limited", "price": 199, "stock": 5, "active": False,
     "description": "Exclusive black limited edition"},
]

PLANS = [
    {"name": "Free", "slug": "free", "description": "One profile, one card", "price": 0, "interval": "lifetime",
     "features": ["1 profile", "Unlimited links"], "max_profiles": 1, "max_cards": 1, "priority": 0},
    {"name": "Pro", "slug": "pro", "description": "Analytics and custom themes", "price": 9.99, "interval": "monthly",
     "features": ["Analytics", "Custom themes", "Premium templates"], "max_profiles": 1, "max_cards": 3,
     "analytics": True, "priority": 10},
    {"name": "Business", "slug": "business", "description": "For teams", "price": 99, "interval": "yearly",
     "features": ["Team management", "Analytics", "Custom domain"], "max_profiles": 10, "max_cards": 20,
     "analytics": True, "custom_domain": True, "priority": 20},
]


def _theme(background: str, text: str, button: str, button_text: str, style: str) -> dict:
    return {
        "backgroundColor": background,
        "textColor": text,
        "buttonColor": button,
        "linkBlockColor": button,
        "buttonTextColor": button_text,
        "buttonStyle": style,
        "fontFamily": "Inter",
        "nameFontSize": 24,
        "bioFontSize": 14,
        "linkFontSize": 16,
    }


TEMPLATES = [
    {"name": "Classic Black", "description": "Black background with gold accents",
     "theme": _theme("#0a0a0a", "#ffffff", "#d4af37", "#0a0a0a", "rounded"), "is_premium": False},
    {"name": "Minimal White", "description": "Clean design on a white background",
     "theme": _theme("#ffffff", "#1a1a1a", "#1a1a1a", "#ffffff", "square"), "is_premium": False},
    {"name": "Sunset Gradient", "description": "Warm sunset tones",
     "theme": _theme("#2d1f3d", "#ffffff", "#ff6b35", "#ffffff", "pill"), "is_premium": True},
    {"name": "Ocean Blue", "description": "Deep, calm blue tones",
     "theme": _theme("#0d1b2a", "#e0e1dd", "#3d5a80", "#ffffff", "rounded"), "is_premium": True},
    {"name": "Royal Gold", "description": "Royal gold accents",
     "theme": _theme("#1a1a2e", "#eaeaea", "#c9a227", "#1a1a2e", "pill"), "is_premium": True},
]


def seed_catalog(repo: SQLRepository) -> None:
    if repo.count_products():
        print("Product catalog already seeded")
        return
    for product in PRODUCTS:
        repo.create_product(**product)
    print(f"Seeded {len(PRODUCTS)} products")


def seed_plans(repo: SQLRepository) -> None:
    if repo.count_plans():
        print("Plans already seeded")
        return
    for plan in PLANS:
        repo.create_plan(**plan)
    print(f"Seeded {len(PLANS)} plans")


def seed_templates(repo: SQLRepository) -> None:
    if repo.count_templates():
        print("Templates already seeded")
        return
    for template in TEMPLATES:
        repo.create_template(is_active=True, **template)
    print(f"Seeded {len(TEMPLATES)} templates")


def seed_admin(repo: SQLRepository, email: str, password: str) -> None:
    auth = AuthService(repository=repo)
    try:
        result = auth.register(email=email, password=password, first_name="Admin", last_name="Inutile")
        user = result.user
    except DuplicateEmail:
        user = repo.get_user_by_email(email)
    repo.update_user(user.id, role="admin", is_active=True)
    print(f"Admin account ready: {user.email}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed reference data")
    ap.add_argument("--admin-email", help="Email of the admin account to create or promote")
    ap.add_argument("--admin-password", help="Password for a newly created admin account")
    args = ap.parse_args()
    if args.admin_email and not args.admin_password:
        raise SystemExit("--admin-password is required with --admin-email")
    if args.admin_password and len(args.admin_password) < 8:
        raise SystemExit("Admin password must have at least 8 characters")

    init_db()
    repo = SQLRepository()
    seed_catalog(repo)
    seed_plans(repo)
    seed_templates(repo)
    if args.admin_email:
        seed_admin(repo, args.admin_email, args.admin_password)


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
