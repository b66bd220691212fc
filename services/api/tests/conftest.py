from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import Product, User
from services.api.app.services.auth import Principal, issue_token

ADDRESS = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "ada@example.com",
    "phone": "5550100",
    "street": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "country": "UK",
    "zipCode": "N1 9GU",
}


@pytest.fixture()
def storefront_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "storefront_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("STOREFRONT_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("STOREFRONT_PAYMENT_PROCESSOR", "mock")
    monkeypatch.setenv("STOREFRONT_JWT_SECRET", "test-secret")
    monkeypatch.delenv("STOREFRONT_STRICT_STATUS_TRANSITIONS", raising=False)
    monkeypatch.delenv("STOREFRONT_MOCK_PAYMENT_STATUS", raising=False)
    init_db()
    return db_path


@pytest.fixture()
def client(storefront_env: Path) -> Iterator[TestClient]:
    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_user(storefront_env: Path) -> Callable[..., str]:
    def _make(user_id: str, *, is_admin: bool = False) -> str:
        db = db_session()
        try:
            db.add(
                User(
                    id=user_id,
                    email=f"{user_id}@example.com",
                    first_name=user_id.title(),
                    last_name="Tester",
                    is_admin=is_admin,
                )
            )
            db.commit()
        finally:
            db.close()
        return user_id

    return _make


@pytest.fixture()
def make_product(storefront_env: Path) -> Callable[..., str]:
    def _make(
        product_id: str,
        *,
        price_cents: int,
        stock: int,
        name: str | None = None,
        in_stock: bool = True,
    ) -> str:
        db = db_session()
        try:
            db.add(
                Product(
                    id=product_id,
                    name=name or product_id,
                    price_cents=price_cents,
                    in_stock=in_stock,
                    stock_quantity=stock,
                )
            )
            db.commit()
        finally:
            db.close()
        return product_id

    return _make


@pytest.fixture()
def auth_headers() -> Callable[..., dict[str, str]]:
    def _headers(user_id: str, *, is_admin: bool = False) -> dict[str, str]:
        token = issue_token(Principal(user_id=user_id, is_admin=is_admin))
        return {"Authorization": f"Bearer {token}"}

    return _headers


def product_stock(product_id: str) -> int:
    db = db_session()
    try:
        product = db.get(Product, product_id)
        assert product is not None
        return product.stock_quantity
    finally:
        db.close()


def place_order(
    client: TestClient,
    headers: dict[str, str],
    items: list[tuple[str, int]],
) -> dict:
    for product_id, quantity in items:
        resp = client.post(
            "/cart/add",
            json={"productId": product_id, "quantity": quantity},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text

    resp = client.post(
        "/orders",
        json={
            "shippingAddress": ADDRESS,
            "billingAddress": ADDRESS,
            "paymentMethod": "card",
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
