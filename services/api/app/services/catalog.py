from __future__ import annotations

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session

from services.api.app.db.models import Product, utcnow
from services.api.app.services.errors import InsufficientStockError, NotFoundError

logger = structlog.get_logger(__name__)


def get_product(db: Session, product_id: str) -> Product | None:
    return db.get(Product, product_id)


def adjust_stock(db: Session, product_id: str, delta: int) -> int:
    """Apply a stock delta in a single conditional UPDATE and return the new quantity.

    Negative deltas only apply while ``stock_quantity >= -delta``; the predicate is evaluated
    by the database together with the write, so concurrent reservations serialize there
    instead of racing through a read-then-write in Python.

    Must run inside the caller's transaction; nothing is committed here.
    """

    stmt = update(Product).where(Product.id == product_id)
    if delta < 0:
        stmt = stmt.where(Product.stock_quantity >= -delta)

    stmt = stmt.values(
        stock_quantity=Product.stock_quantity + delta,
        updated_at=utcnow(),
    ).execution_options(synchronize_session=False)

    result = db.execute(stmt)
    if result.rowcount == 0:
        product = db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        logger.info(
            "Stock reservation rejected",
            product_id=product_id,
            requested=-delta,
        )
        raise InsufficientStockError(product.name)

    refreshed = db.get(Product, product_id, populate_existing=True)
    assert refreshed is not None
    return refreshed.stock_quantity
