#!/usr/bin/env python3
"""
Register a new client card (serial number) directly in the database.

Usage:
  python scripts/add_card.py --serial IC-2025-001234 --order ORD-1 --customer "Jane Doe" --email jane@example.com [--type premium] [--design gold]
"""
from __future__ import annotations

import argparse
import sys

from api.db.session import init_db
from api.domain.lifecycle import CardStatus
from api.repositories.sql_repository import SQLRepository
from api.services.card_service import normalize_serial


def main() -> None:
    ap = argparse.ArgumentParser(description="Register a client card")
    ap.add_argument("--serial", required=True, help="Card serial number (e.g. IC-2025-001234)")
    ap.add_argument("--order", required=True, help="Order id the card belongs to")
    ap.add_argument("--customer", required=True, help="Customer name")
    ap.add_argument("--email", required=True, help="Customer email")
    ap.add_argument("--type", default="standard", help="Card type (default: standard)")
    ap.add_argument("--design", default="classic", help="Card design (default: classic)")
    args = ap.parse_args()

    init_db()
    repo = SQLRepository()
    serial = normalize_serial(args.serial)
    if not serial:
        raise SystemExit("Invalid serial number")
    if repo.serial_exists(serial):
        raise SystemExit(f"Serial '{serial}' already exists")
    email = args.email.strip().lower()
    if "@" not in email:
        raise SystemExit("Invalid email")

    card = repo.create_client_card(
        serial_number=serial,
        order_id=args.order.strip(),
        customer_name=args.customer.strip(),
        email=email,
        card_type=args.type,
        design=args.design,
        status=CardStatus.ORDERED.value,
    )
    print("OK: card registered")
    print(f"  Serial: {card.serial_number}")
    print(f"  Id: {card.id}")
    print(f"  Order: {card.order_id}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
