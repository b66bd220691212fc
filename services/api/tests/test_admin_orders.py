from __future__ import annotations

import pytest
from conftest import place_order, product_stock
from fastapi.testclient import TestClient


@pytest.fixture()
def admin_headers(make_user, auth_headers) -> dict[str, str]:
    make_user("admin", is_admin=True)
    return auth_headers("admin", is_admin=True)


def test_admin_sets_valid_status(
    client: TestClient, make_user, make_product, auth_headers, admin_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    order = place_order(client, auth_headers("u-1"), [("p-1", 1)])

    resp = client.put(
        f"/admin/orders/{order['id']}/status", json={"status": "processing"}, headers=admin_headers
    )

    assert resp.status_code == 200
    assert resp.json()["message"] == "Order status updated successfully"
    assert resp.json()["data"]["status"] == "processing"

    events = client.get(f"/orders/{order['id']}/events", headers=admin_headers).json()["data"]
    assert events[-1]["eventType"] == "ORDER_STATUS_UPDATED"
    assert events[-1]["payload"] == {"from": "pending", "to": "processing", "strict": False}


def test_admin_rejects_unknown_status(
    client: TestClient, make_user, make_product, auth_headers, admin_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    order = place_order(client, auth_headers("u-1"), [("p-1", 1)])

    resp = client.put(
        f"/admin/orders/{order['id']}/status", json={"status": "lost"}, headers=admin_headers
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidStatus"
    current = client.get(f"/orders/{order['id']}", headers=admin_headers).json()["data"]
    assert current["status"] == "pending"


def test_admin_status_unknown_order(client: TestClient, admin_headers) -> None:
    resp = client.put(
        "/admin/orders/missing/status", json={"status": "shipped"}, headers=admin_headers
    )
    assert resp.status_code == 404


def test_non_admin_is_forbidden(
    client: TestClient, make_user, make_product, auth_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    headers = auth_headers("u-1")
    order = place_order(client, headers, [("p-1", 1)])

    listing = client.get("/admin/orders", headers=headers)
    update = client.put(
        f"/admin/orders/{order['id']}/status", json={"status": "shipped"}, headers=headers
    )

    assert listing.status_code == 403
    assert update.status_code == 403
    assert update.json()["error"] == "Forbidden"


def test_permissive_mode_allows_backward_moves(
    client: TestClient, make_user, make_product, auth_headers, admin_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    order = place_order(client, auth_headers("u-1"), [("p-1", 1)])
    url = f"/admin/orders/{order['id']}/status"

    assert client.put(url, json={"status": "delivered"}, headers=admin_headers).status_code == 200
    resp = client.put(url, json={"status": "pending"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "pending"


def test_strict_mode_enforces_forward_graph(
    client: TestClient,
    make_user,
    make_product,
    auth_headers,
    admin_headers,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("STOREFRONT_STRICT_STATUS_TRANSITIONS", "true")
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    order = place_order(client, auth_headers("u-1"), [("p-1", 2)])
    url = f"/admin/orders/{order['id']}/status"

    skip = client.put(url, json={"status": "shipped"}, headers=admin_headers)
    assert skip.status_code == 400
    assert skip.json()["error"] == "InvalidTransition"

    assert client.put(url, json={"status": "confirmed"}, headers=admin_headers).status_code == 200

    cancelled = client.put(url, json={"status": "cancelled"}, headers=admin_headers)
    assert cancelled.status_code == 200
    assert product_stock("p-1") == 5

    back = client.put(url, json={"status": "pending"}, headers=admin_headers)
    assert back.status_code == 400


def test_admin_lists_all_orders_with_filter(
    client: TestClient, make_user, make_product, auth_headers, admin_headers
) -> None:
    make_user("u-1")
    make_user("u-2")
    make_product("p-1", price_cents=1000, stock=10)
    first = place_order(client, auth_headers("u-1"), [("p-1", 1)])
    place_order(client, auth_headers("u-2"), [("p-1", 1)])
    client.put(f"/orders/{first['id']}/cancel", headers=auth_headers("u-1"))

    everything = client.get("/admin/orders", headers=admin_headers).json()
    assert everything["pagination"]["total"] == 2
    assert {o["userId"] for o in everything["data"]} == {"u-1", "u-2"}

    cancelled = client.get(
        "/admin/orders", params={"status": "cancelled"}, headers=admin_headers
    ).json()
    assert [o["id"] for o in cancelled["data"]] == [first["id"]]
    assert cancelled["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}

    bad = client.get("/admin/orders", params={"status": "lost"}, headers=admin_headers)
    assert bad.status_code == 400
    assert bad.json()["error"] == "InvalidStatus"
