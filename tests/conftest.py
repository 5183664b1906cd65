"""
Shared fixtures: a temporary SQLite database per test and an API client bound to it.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# make the api package importable when running the tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient

from api.core import config as core_config
from api.core.rate_limiter import reset_limits
from api.db import models
from api.db import session as db_session
from api.repositories.sql_repository import SQLRepository


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point DATABASE_URL at a fresh SQLite file and reset every cached setting."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    _clear_caches()
    reset_limits()

    engine = db_session.get_engine()
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    engine.dispose()
    _clear_caches()
    reset_limits()


@pytest.fixture()
def repo(db_env):
    return SQLRepository()


@pytest.fixture()
def client(db_env):
    from api.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def register(client: TestClient, email: str, *, first: str = "Jane", last: str = "Doe", password: str = "secret123"):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "firstName": first, "lastName": last},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_admin(client: TestClient, email: str = "admin@example.com") -> dict:
    """Register an account, promote it and return fresh login data."""
    data = register(client, email, first="Ada", last="Admin")
    SQLRepository().update_user(data["user"]["id"], role="admin")
    response = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert response.status_code == 200, response.text
    return response.json()["data"]
