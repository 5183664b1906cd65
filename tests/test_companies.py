from __future__ import annotations

from conftest import auth_header, make_admin, register


def _company(client, headers, admin_user_id, **extra):
    payload = {"name": "Acme Corp", "adminUserId": admin_user_id, "maxEmployees": 2, "maxCards": 1}
    payload.update(extra)
    response = client.post("/api/companies", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _client_card(client, headers, serial):
    response = client.post(
        "/api/admin/client-cards",
        json={
            "serialNumber": serial,
            "orderId": "ORD-ACME",
            "customerName": "Acme Corp",
            "email": "it@acme.test",
            "cardType": "standard",
            "design": "classic",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_company_create_derives_slug_and_links_admin(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    owner = register(client, "owner@acme.test", first="Olive", last="Owner")
    company = _company(client, headers, owner["user"]["id"], address={"street": "1 Main St", "postalCode": "75001"})
    assert company["slug"] == "acme-corp"
    assert company["address"]["postalCode"] == "75001"

    listed = client.get("/api/companies", headers=headers).json()["data"]
    assert listed[0]["employeeCount"] == 1
    assert listed[0]["admin"]["email"] == "owner@acme.test"

    duplicate = client.post(
        "/api/companies", json={"name": "ACME corp", "adminUserId": owner["user"]["id"]}, headers=headers
    )
    assert duplicate.status_code == 409


def test_employee_capacity_applies_to_existing_and_new_users(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    owner = register(client, "owner@acme.test", first="Olive", last="Owner")
    company = _company(client, headers, owner["user"]["id"])
    jane = register(client, "jane@example.com")

    added = client.post(f"/api/companies/{company['id']}/employees", json={"userId": jane["user"]["id"]}, headers=headers)
    assert added.status_code == 201
    assert added.json()["data"]["companyId"] == company["id"]

    bob = register(client, "bob@example.com", first="Bob", last="Smith")
    full = client.post(f"/api/companies/{company['id']}/employees", json={"userId": bob["user"]["id"]}, headers=headers)
    assert full.status_code == 400
    new_user = client.post(
        f"/api/companies/{company['id']}/employees",
        json={"email": "new@acme.test", "firstName": "New", "lastName": "Hire"},
        headers=headers,
    )
    assert new_user.status_code == 400
    assert client.get("/api/profiles/public/new.hire").status_code == 404

    removed = client.delete(f"/api/companies/{company['id']}/employees/{jane['user']['id']}", headers=headers)
    assert removed.status_code == 200
    created = client.post(
        f"/api/companies/{company['id']}/employees",
        json={"email": "New@Acme.test", "firstName": "New", "lastName": "Hire", "password": "welcome123"},
        headers=headers,
    )
    assert created.status_code == 201, created.text
    assert created.json()["data"]["email"] == "new@acme.test"
    assert client.post("/api/auth/login", json={"email": "new@acme.test", "password": "welcome123"}).status_code == 200

    employees = client.get(f"/api/companies/{company['id']}/employees", headers=headers).json()["data"]
    assert {e["email"] for e in employees} == {"owner@acme.test", "new@acme.test"}
    assert all(e["hasProfile"] for e in employees)


def test_assign_and_unassign_cards_within_limits(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    owner = register(client, "owner@acme.test", first="Olive", last="Owner")
    owner_id = owner["user"]["id"]
    company = _company(client, headers, owner_id)
    first = _client_card(client, headers, "IC-ACME-1")
    second = _client_card(client, headers, "IC-ACME-2")
    base = f"/api/companies/{company['id']}/employees/{owner_id}"

    assigned = client.post(f"{base}/assign-card", json={"cardId": first["id"]}, headers=headers)
    assert assigned.status_code == 200, assigned.text
    assert assigned.json()["data"]["userId"] == owner_id

    over_limit = client.post(f"{base}/assign-card", json={"cardId": second["id"]}, headers=headers)
    assert over_limit.status_code == 400

    stats = client.get(f"/api/companies/{company['id']}/stats", headers=headers).json()["data"]
    assert stats["totalCards"] == 1
    assert stats["availableSlots"] == {"employees": 1, "cards": 0}
    cards = client.get(f"/api/companies/{company['id']}/cards", headers=headers).json()["data"]
    assert cards[0]["user"]["id"] == owner_id

    released = client.post(f"{base}/unassign-card/{first['id']}", headers=headers)
    assert released.json()["data"]["userId"] is None
    assert released.json()["data"]["status"] == "ordered"
    assert client.post(f"{base}/assign-card", json={"cardId": second["id"]}, headers=headers).status_code == 200


def test_company_with_employees_cannot_be_deleted(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    owner = register(client, "owner@acme.test", first="Olive", last="Owner")
    company = _company(client, headers, owner["user"]["id"])
    assert client.delete(f"/api/companies/{company['id']}", headers=headers).status_code == 400
    client.delete(f"/api/companies/{company['id']}/employees/{owner['user']['id']}", headers=headers)
    assert client.delete(f"/api/companies/{company['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/companies/{company['id']}", headers=headers).status_code == 404
