#!/usr/bin/env python3
"""
Reset a client card: unbind its owner and profile and put it back to "ordered".
The card's scan history is kept.

Usage:
  python scripts/reset_card.py --serial IC-2025-001234
"""
from __future__ import annotations

import argparse
import sys

from api.db.session import init_db
from api.domain.lifecycle import CardStatus
from api.repositories.sql_repository import SQLRepository
from api.services.card_service import normalize_serial


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset a client card")
    ap.add_argument("--serial", required=True, help="Serial number of the card to reset")
    args = ap.parse_args()

    init_db()
    repo = SQLRepository()
    serial = normalize_serial(args.serial)
    card = repo.get_client_card_by_serial(serial)
    if not card:
        raise SystemExit(f"Serial '{serial}' not found")
    previous_owner = card.user_id

    repo.update_client_card(
        card.id,
        user_id=None,
        profile_id=None,
        activated_at=None,
        status=CardStatus.ORDERED.value,
    )
    print("OK: card reset")
    print(f"  Serial: {serial}")
    if previous_owner:
        print(f"  Previous owner: {previous_owner}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
