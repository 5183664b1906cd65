"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import timedelta

from api.core.security import hash_token
from api.core.utils import utcnow
from api.db.models import Profile, User


def _account(repo, email="alice@example.com", slug="alice.doe"):
    user = User(email=email, password_hash="hash", first_name="Alice", last_name="Doe")
    profile = Profile(slug=slug, display_name="Alice Doe", links=[], social_links=[], theme={})
    return repo.create_account(user, profile)


def _card(repo, serial="IC-2025-000001", **values):
    data = dict(
        serial_number=serial,
        order_id="ORD-1",
        customer_name="Alice Doe",
        email="alice@example.com",
        card_type="premium",
        design="gold",
        status="ordered",
    )
    data.update(values)
    return repo.create_client_card(**data)


def test_create_account_links_profile_and_finance(repo):
    user, profile = _account(repo)
    assert profile.user_id == user.id
    assert repo.get_user_by_email("ALICE@example.com ").id == user.id
    assert repo.slug_exists("alice.doe")
    assert not repo.slug_exists("alice.doe", exclude_profile_id=profile.id)
    assert repo.get_profile_by_slug("Alice.Doe").id == profile.id
    finance = repo.get_finance(user.id)
    assert finance is not None
    assert finance.payment_cards == []


def test_delete_user_cascades_to_profile_and_finance(repo):
    user, profile = _account(repo)
    assert repo.delete_user(user.id) is True
    assert repo.get_profile(profile.id) is None
    assert repo.get_finance(user.id) is None
    assert repo.delete_user(user.id) is False


def test_list_users_search_and_pagination(repo):
    _account(repo, "alice@example.com", "alice.doe")
    _account(repo, "bob@example.com", "bob.doe")
    _account(repo, "carol@sample.org", "carol.doe")

    items, total = repo.list_users(page=1, limit=2)
    assert total == 3
    assert len(items) == 2

    items, total = repo.list_users(search="EXAMPLE")
    assert total == 2
    assert {u.email for u in items} == {"alice@example.com", "bob@example.com"}


def test_serial_lookup_is_case_insensitive(repo):
    card = _card(repo, "IC-2025-001234")
    assert repo.get_client_card_by_serial("ic-2025-001234").id == card.id
    assert repo.serial_exists("IC-2025-001234")


def test_activate_card_binds_only_once(repo):
    alice, alice_profile = _account(repo)
    bob, bob_profile = _account(repo, "bob@example.com", "bob.doe")
    card = _card(repo)

    assert repo.activate_card(card.id, user_id=alice.id, profile_id=alice_profile.id, activated_at=utcnow())
    assert not repo.activate_card(card.id, user_id=bob.id, profile_id=bob_profile.id, activated_at=utcnow())

    stored = repo.get_client_card(card.id)
    assert stored.user_id == alice.id
    assert stored.profile_id == alice_profile.id
    assert stored.status == "activated"


def test_assigned_card_is_activated_only_by_its_assignee(repo):
    alice, alice_profile = _account(repo)
    bob, bob_profile = _account(repo, "bob@example.com", "bob.doe")
    card = _card(repo)
    assert repo.assign_card(card.id, alice.id, status="shipped")

    assert not repo.activate_card(card.id, user_id=bob.id, profile_id=bob_profile.id, activated_at=utcnow())
    assert repo.activate_card(card.id, user_id=alice.id, profile_id=alice_profile.id, activated_at=utcnow())
    assert not repo.activate_card(card.id, user_id=alice.id, profile_id=alice_profile.id, activated_at=utcnow())

    stored = repo.get_client_card(card.id)
    assert (stored.user_id, stored.profile_id, stored.status) == (alice.id, alice_profile.id, "activated")


def test_reset_token_is_consumed_once_and_not_after_expiry(repo):
    user, _profile = _account(repo)
    now = utcnow()
    repo.update_user(user.id, reset_token_hash=hash_token("t0ken"), reset_token_expires_at=now + timedelta(hours=1))

    assert repo.consume_reset_token(hash_token("t0ken"), now=now, password_hash="new") == user.id
    assert repo.consume_reset_token(hash_token("t0ken"), now=now, password_hash="again") is None
    stored = repo.get_user(user.id)
    assert stored.password_hash == "new"
    assert stored.reset_token_hash is None

    repo.update_user(user.id, reset_token_hash=hash_token("late"), reset_token_expires_at=now + timedelta(hours=1))
    assert repo.consume_reset_token(hash_token("late"), now=now + timedelta(hours=2), password_hash="x") is None
    assert repo.get_user(user.id).password_hash == "new"


def test_low_stock_products_sorted_and_active_only(repo):
    repo.create_product(name="Metal", type="metal", price=149, stock=12, active=True)
    repo.create_product(name="Black", type="limited", price=199, stock=5, active=False)
    repo.create_product(name="Gold", type="luxury", price=129, stock=3, active=True)
    repo.create_product(name="Standard", type="standard", price=79, stock=120, active=True)

    names = [p.name for p in repo.low_stock_products(20)]
    assert names == ["Gold", "Metal"]
    assert repo.count_low_stock(20) == 2
    assert repo.low_stock_products(0) == []


def test_scan_aggregations(repo):
    user, profile = _account(repo)
    card = _card(repo)
    repo.activate_card(card.id, user_id=user.id, profile_id=profile.id, activated_at=utcnow())
    now = utcnow()
    for device, country in (("mobile", "FR"), ("mobile", "FR"), ("desktop", "US")):
        repo.add_scan(
            card_id=card.id,
            serial_number=card.serial_number,
            user_id=user.id,
            scan_date=now,
            device=device,
            country=country,
        )

    assert repo.count_scans(user_id=user.id) == 3
    assert repo.count_scans(card_id=card.id, since=now + timedelta(seconds=1)) == 0
    assert dict(repo.scans_by_device(card_id=card.id)) == {"mobile": 2, "desktop": 1}
    assert repo.scans_by_country(limit=1) == [("FR", 2)]
    assert repo.scans_by_profile() == [(profile.id, 3)]
    serial, count, _last = repo.scans_by_card(user.id)[0]
    assert (serial, count) == (card.serial_number, 3)


def test_payment_cards_are_reassigned(repo):
    user, _profile = _account(repo)
    repo.save_payment_cards(user.id, [{"id": "a", "last4": "4242", "isDefault": True}])
    assert repo.get_finance(user.id).payment_cards == [{"id": "a", "last4": "4242", "isDefault": True}]
    repo.save_payment_cards(user.id, [])
    assert repo.get_finance(user.id).payment_cards == []
