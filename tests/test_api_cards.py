from __future__ import annotations

from conftest import auth_header, make_admin, register

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148 Safari/604.1"


def _issue_card(client, admin_token, serial="IC-2025-001234"):
    response = client.post(
        "/api/admin/client-cards",
        json={
            "serialNumber": serial,
            "orderId": "ORD-42",
            "customerName": "Jane Doe",
            "email": "jane@example.com",
            "cardType": "premium",
            "design": "gold",
        },
        headers=auth_header(admin_token),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_card_activation_binds_once(client):
    admin = make_admin(client)
    card = _issue_card(client, admin["token"])
    assert card["serialNumber"] == "IC-2025-001234"
    assert card["status"] == "ordered"

    setup = client.get("/api/cards/setup/ic-2025-001234").json()["data"]
    assert setup["isActivated"] is False
    assert client.get("/api/cards/redirect/IC-2025-001234").json()["data"] == {
        "isActivated": False,
        "serialNumber": "IC-2025-001234",
    }

    jane = register(client, "jane@example.com")
    bob = register(client, "bob@example.com", first="Bob", last="Smith")

    activated = client.post(
        "/api/cards/activate", json={"serialNumber": "ic-2025-001234"}, headers=auth_header(jane["token"])
    )
    assert activated.status_code == 200, activated.text
    assert activated.json()["data"]["card"]["status"] == "activated"

    again = client.post(
        "/api/cards/activate", json={"serialNumber": "IC-2025-001234"}, headers=auth_header(bob["token"])
    )
    assert again.status_code == 400
    assert again.json() == {"success": False, "error": "Card already activated by another user"}

    assert client.get("/api/cards/redirect/IC-2025-001234").json()["data"] == {
        "isActivated": True,
        "profileSlug": "jane.doe",
    }
    mine = client.get("/api/cards/my-cards", headers=auth_header(jane["token"])).json()["data"]
    assert [c["serialNumber"] for c in mine] == ["IC-2025-001234"]
    assert client.get("/api/cards/my-cards", headers=auth_header(bob["token"])).json()["data"] == []


def test_company_assigned_card_is_activated_by_its_employee(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    owner = register(client, "owner@acme.test", first="Olive", last="Owner")
    owner_id = owner["user"]["id"]
    company = client.post("/api/companies", json={"name": "Acme Corp", "adminUserId": owner_id}, headers=headers)
    assert company.status_code == 201, company.text
    card = _issue_card(client, admin["token"])

    assigned = client.post(
        f"/api/companies/{company.json()['data']['id']}/employees/{owner_id}/assign-card",
        json={"cardId": card["id"]},
        headers=headers,
    )
    assert assigned.status_code == 200, assigned.text
    assert assigned.json()["data"]["status"] == "shipped"

    bob = register(client, "bob@example.com", first="Bob", last="Smith")
    stolen = client.post(
        "/api/cards/activate", json={"serialNumber": "IC-2025-001234"}, headers=auth_header(bob["token"])
    )
    assert stolen.status_code == 400

    activated = client.post(
        "/api/cards/activate", json={"serialNumber": "IC-2025-001234"}, headers=auth_header(owner["token"])
    )
    assert activated.status_code == 200, activated.text
    assert activated.json()["data"]["card"]["status"] == "activated"
    assert client.get("/api/cards/redirect/IC-2025-001234").json()["data"] == {
        "isActivated": True,
        "profileSlug": "olive.owner",
    }

    again = client.post(
        "/api/cards/activate", json={"serialNumber": "IC-2025-001234"}, headers=auth_header(owner["token"])
    )
    assert again.status_code == 400
    assert again.json()["error"] == "Card already activated"


def test_activation_rejects_foreign_profile(client):
    admin = make_admin(client)
    _issue_card(client, admin["token"])
    register(client, "jane@example.com")
    bob = register(client, "bob@example.com", first="Bob", last="Smith")
    profiles = client.get("/api/admin/profiles", headers=auth_header(admin["token"])).json()["data"]
    jane_profile = next(p for p in profiles if p["slug"] == "jane.doe")

    response = client.post(
        "/api/cards/activate",
        json={"serialNumber": "IC-2025-001234", "profileId": jane_profile["id"]},
        headers=auth_header(bob["token"]),
    )
    assert response.status_code == 403


def test_unknown_serial_is_404(client):
    assert client.get("/api/cards/setup/IC-0000").status_code == 404
    assert client.post("/api/cards/scan", json={"serialNumber": "IC-0000"}).status_code == 404


def test_scans_are_recorded_with_device_and_country(client):
    admin = make_admin(client)
    card = _issue_card(client, admin["token"])
    jane = register(client, "jane@example.com")
    client.post("/api/cards/activate", json={"serialNumber": card["serialNumber"]}, headers=auth_header(jane["token"]))

    first = client.post(
        "/api/cards/scan",
        json={"serialNumber": "ic-2025-001234"},
        headers={"User-Agent": IPHONE_UA, "CF-IPCountry": "fr"},
    )
    assert first.status_code == 200
    assert first.json()["data"] == {"recorded": True}
    client.post(
        "/api/cards/scan",
        json={"serialNumber": "IC-2025-001234", "userAgent": "Mozilla/5.0 (Windows NT 10.0) Chrome/120.0"},
        headers={"CF-IPCountry": "XX"},
    )

    analytics = client.get("/api/cards/analytics", headers=auth_header(jane["token"])).json()["data"]
    assert analytics["totalScans"] == 2
    assert analytics["scansByCard"][0]["serialNumber"] == "IC-2025-001234"
    assert analytics["scansByCard"][0]["count"] == 2
    assert sum(day["count"] for day in analytics["scansByDate"]) == 2

    per_card = client.get(f"/api/cards/analytics/{card['id']}", headers=auth_header(jane["token"])).json()["data"]
    assert sorted((d["device"], d["count"]) for d in per_card["scansByDevice"]) == [("desktop", 1), ("mobile", 1)]

    countries = client.get("/api/analytics/countries", headers=auth_header(admin["token"])).json()["data"]
    assert [(c["code"], c["users"]) for c in countries] == [("FR", 1)]


def test_card_analytics_is_owner_only(client):
    admin = make_admin(client)
    card = _issue_card(client, admin["token"])
    jane = register(client, "jane@example.com")
    bob = register(client, "bob@example.com", first="Bob", last="Smith")
    client.post("/api/cards/activate", json={"serialNumber": card["serialNumber"]}, headers=auth_header(jane["token"]))

    response = client.get(f"/api/cards/analytics/{card['id']}", headers=auth_header(bob["token"]))
    assert response.status_code == 403
