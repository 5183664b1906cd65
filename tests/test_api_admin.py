from __future__ import annotations

from conftest import auth_header, make_admin, register


def _products(client, headers):
    for name, stock, active in (("Metal", 12, True), ("Black", 5, False), ("Gold", 3, True), ("Standard", 120, True)):
        response = client.post(
            "/api/admin/cards",
            json={"name": name, "type": name.lower(), "price": 99, "stock": stock, "active": active},
            headers=headers,
        )
        assert response.status_code == 201, response.text


def test_low_stock_lists_active_products_by_stock(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    _products(client, headers)

    names = [p["name"] for p in client.get("/api/admin/cards/low-stock", headers=headers).json()["data"]]
    assert names == ["Gold", "Metal"]
    tight = client.get("/api/admin/cards/low-stock", params={"threshold": 4}, headers=headers).json()["data"]
    assert [p["name"] for p in tight] == ["Gold"]
    assert client.get("/api/admin/cards/low-stock", params={"threshold": -1}, headers=headers).status_code == 400

    assert client.get("/api/admin/stats", headers=headers).json()["data"]["lowStock"] == 2


def test_product_toggle_and_update(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    created = client.post(
        "/api/admin/cards", json={"name": "Standard", "type": "standard", "price": 79}, headers=headers
    ).json()["data"]
    toggled = client.put(f"/api/admin/cards/{created['id']}/toggle", headers=headers).json()["data"]
    assert toggled["active"] is False
    updated = client.put(f"/api/admin/cards/{created['id']}", json={"stock": 50}, headers=headers).json()["data"]
    assert (updated["stock"], updated["price"]) == (50, 79)
    assert client.delete(f"/api/admin/cards/{created['id']}", headers=headers).status_code == 200
    assert client.put(f"/api/admin/cards/{created['id']}/toggle", headers=headers).status_code == 404


def test_orders_and_revenue(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    order = client.post(
        "/api/admin/orders",
        json={
            "userId": admin["user"]["id"],
            "customerName": "Ada Admin",
            "email": "ADMIN@example.com",
            "items": ["Gold"],
            "total": 129.5,
        },
        headers=headers,
    )
    assert order.status_code == 201, order.text
    order_id = order.json()["data"]["id"]
    assert order.json()["data"]["status"] == "pending"

    stats = client.get("/api/admin/stats", headers=headers).json()["data"]
    assert stats["pendingOrders"] == 1
    assert stats["totalRevenue"] == 0

    bad = client.put(f"/api/admin/orders/{order_id}/status", json={"status": "lost"}, headers=headers)
    assert bad.status_code == 400
    done = client.put(
        f"/api/admin/orders/{order_id}/status", json={"status": "COMPLETED", "trackingNumber": "TRK1"}, headers=headers
    ).json()["data"]
    assert (done["status"], done["trackingNumber"]) == ("completed", "TRK1")

    stats = client.get("/api/admin/stats", headers=headers).json()["data"]
    assert (stats["pendingOrders"], stats["totalRevenue"]) == (0, 129.5)
    assert len(client.get("/api/admin/orders", params={"status": "completed"}, headers=headers).json()["data"]) == 1
    assert client.get("/api/admin/orders", params={"status": "nope"}, headers=headers).status_code == 400

    assert client.delete(f"/api/admin/orders/{order_id}", headers=headers).status_code == 200
    assert client.get(f"/api/admin/orders/{order_id}", headers=headers).status_code == 404


def test_client_cards_reject_duplicate_serials(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    payload = {
        "serialNumber": "ic-2025-000777",
        "orderId": "ORD-7",
        "customerName": "Jane Doe",
        "email": "jane@example.com",
        "cardType": "standard",
        "design": "classic",
    }
    created = client.post("/api/admin/client-cards", json=payload, headers=headers)
    assert created.status_code == 201
    card = created.json()["data"]
    assert card["serialNumber"] == "IC-2025-000777"

    duplicate = client.post("/api/admin/client-cards", json={**payload, "serialNumber": "IC-2025-000777"}, headers=headers)
    assert duplicate.status_code == 400

    by_serial = client.get("/api/admin/client-cards/serial/ic-2025-000777", headers=headers).json()["data"]
    assert by_serial["id"] == card["id"]
    assert [c["id"] for c in client.get("/api/admin/client-cards/order/ORD-7", headers=headers).json()["data"]] == [
        card["id"]
    ]

    delivered = client.put(f"/api/admin/client-cards/{card['id']}/status", json={"status": "delivered"}, headers=headers)
    assert delivered.json()["data"]["deliveryDate"] is not None
    assert (
        client.put(f"/api/admin/client-cards/{card['id']}/status", json={"status": "lost"}, headers=headers).status_code
        == 400
    )


def test_role_update_and_hard_delete(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    jane = register(client, "jane@example.com")
    jane_id = jane["user"]["id"]

    promoted = client.put(f"/api/admin/users/{jane_id}/role", json={"role": "admin"}, headers=headers)
    assert promoted.json()["data"]["role"] == "admin"
    assert client.put(f"/api/admin/users/{jane_id}/role", json={"role": "root"}, headers=headers).status_code == 400

    users = client.get("/api/admin/users", headers=headers).json()["data"]
    assert {u["email"] for u in users} == {"admin@example.com", "jane@example.com"}

    assert client.delete(f"/api/admin/users/{jane_id}", headers=headers).status_code == 200
    assert client.get("/api/profiles/public/jane.doe").status_code == 404
    assert client.delete(f"/api/admin/users/{jane_id}", headers=headers).status_code == 404
