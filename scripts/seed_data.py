from __future__ import annotations

import argparse

from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import Product, User
from services.api.app.services.auth import Principal, issue_token

PRODUCTS = (
    ("prod-widget", "Widget", 1000, 25),
    ("prod-gadget", "Gadget", 4999, 10),
    ("prod-gizmo", "Gizmo", 12500, 3),
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed local Storefront data")
    parser.add_argument("--user-id", default="u-1")
    parser.add_argument("--user-email", default="shopper@example.com")
    parser.add_argument("--admin-id", default="admin-1")
    parser.add_argument("--admin-email", default="admin@example.com")
    args = parser.parse_args()

    init_db()

    db = db_session()
    try:
        for uid, email, is_admin in (
            (args.user_id, args.user_email, False),
            (args.admin_id, args.admin_email, True),
        ):
            if db.get(User, uid) is None:
                db.add(
                    User(
                        id=uid,
                        email=email,
                        first_name="Admin" if is_admin else "Shopper",
                        last_name="Local",
                        is_admin=is_admin,
                    )
                )

        for product_id, name, price_cents, stock in PRODUCTS:
            if db.get(Product, product_id) is None:
                db.add(
                    Product(
                        id=product_id,
                        name=name,
                        price_cents=price_cents,
                        in_stock=stock > 0,
                        stock_quantity=stock,
                    )
                )

        db.commit()
    finally:
        db.close()

    print(f"Seeded users={args.user_id},{args.admin_id} products={len(PRODUCTS)}")
    print(f"User token:  {issue_token(Principal(user_id=args.user_id))}")
    print(f"Admin token: {issue_token(Principal(user_id=args.admin_id, is_admin=True))}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
