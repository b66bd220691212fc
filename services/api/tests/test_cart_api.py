from __future__ import annotations

from fastapi.testclient import TestClient


def test_get_cart_creates_empty_cart(client: TestClient, make_user, auth_headers) -> None:
    make_user("u-1")

    resp = client.get("/cart", headers=auth_headers("u-1"))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["userId"] == "u-1"
    assert data["items"] == []
    assert data["totalAmountCents"] == 0
    assert data["totalItems"] == 0


def test_add_merges_lines_and_tracks_totals(
    client: TestClient, make_user, make_product, auth_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    make_product("p-2", price_cents=250, stock=5)
    headers = auth_headers("u-1")

    client.post("/cart/add", json={"productId": "p-1", "quantity": 1}, headers=headers)
    client.post("/cart/add", json={"productId": "p-2", "quantity": 2}, headers=headers)
    resp = client.post("/cart/add", json={"productId": "p-1", "quantity": 1}, headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Item added to cart successfully"
    data = body["data"]
    assert len(data["items"]) == 2
    assert data["totalAmountCents"] == 2500
    assert data["totalItems"] == 4


def test_add_rejects_quantity_over_stock(
    client: TestClient, make_user, make_product, auth_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=2, name="Widget")
    headers = auth_headers("u-1")

    client.post("/cart/add", json={"productId": "p-1", "quantity": 2}, headers=headers)
    resp = client.post("/cart/add", json={"productId": "p-1", "quantity": 1}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"] == "InsufficientStock"
    assert "Widget" in resp.json()["message"]


def test_add_unknown_product_is_not_found(client: TestClient, make_user, auth_headers) -> None:
    make_user("u-1")

    resp = client.post(
        "/cart/add", json={"productId": "missing", "quantity": 1}, headers=auth_headers("u-1")
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFound"


def test_add_rejects_non_positive_quantity(client: TestClient, make_user, auth_headers) -> None:
    make_user("u-1")

    resp = client.post(
        "/cart/add", json={"productId": "p-1", "quantity": 0}, headers=auth_headers("u-1")
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationFailed"


def test_update_to_zero_removes_line(
    client: TestClient, make_user, make_product, auth_headers
) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    headers = auth_headers("u-1")
    client.post("/cart/add", json={"productId": "p-1", "quantity": 2}, headers=headers)

    resp = client.put("/cart/update", json={"productId": "p-1", "quantity": 3}, headers=headers)
    assert resp.json()["data"]["totalAmountCents"] == 3000

    resp = client.put("/cart/update", json={"productId": "p-1", "quantity": 0}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["items"] == []
    assert resp.json()["data"]["totalAmountCents"] == 0


def test_remove_and_clear(client: TestClient, make_user, make_product, auth_headers) -> None:
    make_user("u-1")
    make_product("p-1", price_cents=1000, stock=5)
    make_product("p-2", price_cents=500, stock=5)
    headers = auth_headers("u-1")
    client.post("/cart/add", json={"productId": "p-1", "quantity": 1}, headers=headers)
    client.post("/cart/add", json={"productId": "p-2", "quantity": 1}, headers=headers)

    resp = client.delete("/cart/remove/p-1", headers=headers)
    assert resp.status_code == 200
    assert [i["productId"] for i in resp.json()["data"]["items"]] == ["p-2"]

    missing = client.delete("/cart/remove/p-1", headers=headers)
    assert missing.status_code == 404

    resp = client.delete("/cart/clear", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["items"] == []
    assert resp.json()["data"]["totalItems"] == 0
