from __future__ import annotations

from conftest import auth_header, make_admin, register


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_register_returns_token_and_slug(client):
    data = register(client, "jane@example.com")
    assert data["profile"] == {"slug": "jane.doe"}
    assert data["user"]["email"] == "jane@example.com"
    assert "passwordHash" not in data["user"]

    me = client.get("/api/auth/me", headers=auth_header(data["token"]))
    assert me.status_code == 200
    assert me.json()["data"]["profile"]["slug"] == "jane.doe"


def test_register_duplicate_email_is_conflict(client):
    register(client, "jane@example.com")
    response = client.post(
        "/api/auth/register",
        json={"email": "JANE@example.com", "password": "secret123", "firstName": "J", "lastName": "D"},
    )
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_register_validation_error_is_400(client):
    response = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "short", "firstName": "J", "lastName": "D"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_login_same_message_for_unknown_email_and_bad_password(client):
    register(client, "jane@example.com")
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    wrong = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "wrong-pass"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["error"] == wrong.json()["error"]


def test_forgot_password_same_answer_for_any_email(client):
    register(client, "jane@example.com")
    known = client.post("/api/auth/forgot-password", json={"email": "jane@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_login_is_rate_limited(client):
    register(client, "jane@example.com")
    statuses = [
        client.post("/api/auth/login", json={"email": "jane@example.com", "password": "wrong-pass"}).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429
    limited = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "secret123"})
    assert limited.status_code == 429
    assert int(limited.headers["retry-after"]) >= 1
    assert limited.json() == {"success": False, "error": "Too many requests. Try again shortly."}


def test_protected_routes_require_valid_token(client):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers=auth_header("garbage")).status_code == 401


def test_deactivated_user_token_is_rejected(client):
    data = register(client, "jane@example.com")
    headers = auth_header(data["token"])
    assert client.delete("/api/users/me", headers=headers).status_code == 200
    assert client.get("/api/users/me", headers=headers).status_code == 401
    public = client.get("/api/profiles/public/jane.doe")
    assert public.status_code == 403


def test_admin_routes_forbid_regular_users(client):
    data = register(client, "jane@example.com")
    response = client.get("/api/admin/stats", headers=auth_header(data["token"]))
    assert response.status_code == 403


def test_admin_user_directory(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    register(client, "jane@example.com")
    register(client, "bob@sample.org", first="Bob", last="Smith")

    response = client.get("/api/users", params={"search": "smith", "limit": 10}, headers=headers)
    body = response.json()
    assert response.status_code == 200
    assert [u["email"] for u in body["data"]] == ["bob@sample.org"]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1, "hasMore": False}

    bob_id = body["data"][0]["id"]
    updated = client.put(f"/api/users/{bob_id}", json={"phone": "+33 6 00 00 00 00"}, headers=headers)
    assert updated.json()["data"]["phone"] == "+33 6 00 00 00 00"

    assert client.delete(f"/api/admin/users/{bob_id}", headers=headers).status_code == 200
    assert client.get(f"/api/users/{bob_id}", headers=headers).status_code == 404
