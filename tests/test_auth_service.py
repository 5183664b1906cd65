from __future__ import annotations

from datetime import timedelta

import pytest

from api.core.errors import (
    AccountDisabled,
    AuthenticationError,
    DuplicateEmail,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationError,
)
from api.core.security import hash_token, verify_password
from api.core.utils import utcnow
from api.services.auth_service import AuthService
from api.services.session_service import decode_token, issue_token


def _register(svc: AuthService, email="jane@example.com", first="Jane", last="Doe"):
    return svc.register(email=email, password="secret123", first_name=first, last_name=last)


def test_register_creates_user_profile_and_finance(repo):
    svc = AuthService(repository=repo)
    result = _register(svc, email="  Jane@Example.com ")

    assert result.user.email == "jane@example.com"
    assert result.profile.slug == "jane.doe"
    assert result.profile.display_name == "Jane Doe"
    assert repo.get_finance(result.user.id) is not None
    assert decode_token(result.token, svc.settings).user_id == result.user.id


def test_register_duplicate_email_creates_nothing(repo):
    svc = AuthService(repository=repo)
    _register(svc)
    with pytest.raises(DuplicateEmail):
        _register(svc, email="JANE@example.com", first="Other", last="Person")

    _items, total = repo.list_users()
    assert total == 1
    assert not repo.slug_exists("other.person")


def test_register_suffixes_colliding_slugs(repo):
    svc = AuthService(repository=repo)
    _register(svc, email="a@example.com")
    second = _register(svc, email="b@example.com")
    third = _register(svc, email="c@example.com")
    assert second.profile.slug == "jane.doe1"
    assert third.profile.slug == "jane.doe2"


def test_login_errors_do_not_reveal_which_part_failed(repo):
    svc = AuthService(repository=repo)
    _register(svc)
    with pytest.raises(InvalidCredentials) as unknown:
        svc.login("nobody@example.com", "secret123")
    with pytest.raises(InvalidCredentials) as wrong:
        svc.login("jane@example.com", "not-the-password")
    assert unknown.value.message == wrong.value.message


def test_login_rejects_disabled_account(repo):
    svc = AuthService(repository=repo)
    result = _register(svc)
    repo.update_user(result.user.id, is_active=False)
    with pytest.raises(AccountDisabled):
        svc.login("jane@example.com", "secret123")


def test_reset_token_expiry_boundary(repo, monkeypatch):
    svc = AuthService(repository=repo)
    user = _register(svc).user
    start = utcnow().replace(microsecond=0)
    monkeypatch.setattr(svc, "_now", lambda: start)

    token = "a" * 64
    repo.update_user(
        user.id,
        reset_token_hash=hash_token(token),
        reset_token_expires_at=start + timedelta(seconds=svc.settings.password_reset_ttl),
    )

    monkeypatch.setattr(svc, "_now", lambda: start + timedelta(seconds=3601))
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password(token, "newsecret123")

    monkeypatch.setattr(svc, "_now", lambda: start + timedelta(seconds=3599))
    svc.reset_password(token, "newsecret123")
    assert verify_password("newsecret123", repo.get_user(user.id).password_hash)


def test_reset_token_is_single_use(repo, monkeypatch):
    svc = AuthService(repository=repo)
    user = _register(svc).user
    sent = {}
    monkeypatch.setattr(
        "api.services.auth_service.send_template",
        lambda name, to, text, **ctx: sent.update(url=ctx["reset_url"]),
    )

    assert svc.issue_password_reset("jane@example.com") is True
    token = sent["url"].split("token=", 1)[1]
    stored = repo.get_user(user.id)
    assert stored.reset_token_hash == hash_token(token)

    svc.reset_password(token, "another-pass")
    assert repo.get_user(user.id).reset_token_hash is None
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password(token, "third-pass1")


def test_forgot_password_for_unknown_email_is_silent(repo):
    svc = AuthService(repository=repo)
    assert svc.issue_password_reset("ghost@example.com") is False


def test_change_password_requires_current_password(repo):
    svc = AuthService(repository=repo)
    user = _register(svc).user
    with pytest.raises(ValidationError):
        svc.change_password(user, "wrong-pass", "newsecret123")
    svc.change_password(user, "secret123", "newsecret123")
    assert svc.login("jane@example.com", "newsecret123").user.id == user.id


def test_session_token_carries_role_and_expires(repo):
    svc = AuthService(repository=repo)
    user = _register(svc).user
    claims = decode_token(issue_token(user, svc.settings), svc.settings)
    assert (claims.user_id, claims.email, claims.role) == (user.id, "jane@example.com", "user")

    old = issue_token(user, svc.settings, now=0)
    with pytest.raises(AuthenticationError):
        decode_token(old, svc.settings)
