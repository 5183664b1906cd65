from __future__ import annotations

from api.db.models import SubscriptionPlan
from api.services.subscription_service import recurring_revenue, round_half_up

from conftest import auth_header, make_admin, register


def _plan(price, interval):
    return SubscriptionPlan(name="p", slug="p", price=price, interval=interval)


def test_recurring_revenue_normalizes_intervals():
    plans = [_plan(9.99, "monthly"), _plan(9.99, "monthly"), _plan(99, "yearly"), _plan(49, "lifetime")]
    assert recurring_revenue(plans) == (28, 339)
    assert recurring_revenue([]) == (0, 0)


def test_recurring_revenue_rounds_half_up():
    assert round_half_up(2.5) == 3
    assert recurring_revenue([_plan(2.5, "monthly")]) == (3, 30)


def _create_plan(client, headers, **values):
    payload = {"name": "Pro", "slug": "PRO", "price": 9.99, "interval": "monthly", "features": ["Analytics"]}
    payload.update(values)
    response = client.post("/api/subscriptions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_plans_binding_and_overview(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    pro = _create_plan(client, headers)
    assert pro["slug"] == "pro"
    business = _create_plan(client, headers, name="Business", slug="business", price=99, interval="yearly")
    _create_plan(client, headers, name="Legacy", slug="legacy", price=5, active=False)

    assert client.post("/api/subscriptions", json={"name": "Pro", "slug": "pro", "price": 1}, headers=headers).status_code == 409
    assert {p["slug"] for p in client.get("/api/subscriptions/plans").json()["data"]} == {"pro", "business"}

    jane = register(client, "jane@example.com")
    bound = client.post(
        "/api/subscriptions/users",
        json={"userId": jane["user"]["id"], "subscriptionId": pro["id"]},
        headers=headers,
    )
    assert bound.status_code == 201, bound.text
    binding = bound.json()["data"]
    assert binding["status"] == "active"
    assert binding["nextPaymentDate"] is not None
    client.post(
        "/api/subscriptions/users",
        json={"userId": admin["user"]["id"], "subscriptionId": business["id"]},
        headers=headers,
    )

    overview = client.get("/api/subscriptions/stats/overview", headers=headers).json()["data"]
    assert (overview["totalPlans"], overview["activePlans"], overview["totalSubscribers"]) == (3, 2, 2)
    assert (overview["mrr"], overview["arr"]) == (18, 219)

    snapshot = client.get("/api/finances/subscription", headers=auth_header(jane["token"])).json()["data"]
    assert (snapshot["plan"], snapshot["status"], snapshot["cancelAtPeriodEnd"]) == ("pro", "active", False)

    subscribers = client.get(f"/api/subscriptions/{pro['id']}/subscribers", headers=headers).json()["data"]
    assert [s["user"]["email"] for s in subscribers] == ["jane@example.com"]
    assert client.delete(f"/api/subscriptions/{pro['id']}", headers=headers).status_code == 400


def test_binding_status_moves_forward_only(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    plan = _create_plan(client, headers)
    binding = client.post(
        "/api/subscriptions/users",
        json={"userId": admin["user"]["id"], "subscriptionId": plan["id"]},
        headers=headers,
    ).json()["data"]
    url = f"/api/subscriptions/users/{binding['id']}"

    cancelled = client.put(url, json={"status": "cancelled"}, headers=headers).json()["data"]
    assert cancelled["cancelledAt"] is not None
    assert client.put(url, json={"status": "expired"}, headers=headers).status_code == 400
    assert client.put(url, json={"status": "unknown"}, headers=headers).status_code == 400
    reactivated = client.put(url, json={"status": "active"}, headers=headers).json()["data"]
    assert (reactivated["status"], reactivated["cancelledAt"]) == ("active", None)

    overview = client.get("/api/subscriptions/stats/overview", headers=headers).json()["data"]
    assert overview["totalSubscribers"] == 1


def test_plan_without_bindings_is_removed(client):
    admin = make_admin(client)
    headers = auth_header(admin["token"])
    plan = _create_plan(client, headers)
    assert client.delete(f"/api/subscriptions/{plan['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/subscriptions/{plan['id']}", headers=headers).status_code == 404
    assert client.get("/api/subscriptions/plans").status_code == 200
