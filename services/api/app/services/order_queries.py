from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from services.api.app.db.models import Order
from services.api.app.services.auth import Principal
from services.api.app.services.errors import NotFoundError
from services.api.app.services.order_state import parse_order_status


def get_visible_order(db: Session, order_id: str, principal: Principal) -> Order:
    """Load an order the principal may see; other users' orders look absent."""

    stmt = select(Order).where(Order.id == order_id)
    if not principal.is_admin:
        stmt = stmt.where(Order.user_id == principal.user_id)

    order = db.scalars(stmt).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def list_orders(
    db: Session,
    *,
    user_id: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Order], int]:
    stmt = select(Order)
    if user_id is not None:
        stmt = stmt.where(Order.user_id == user_id)
    if status:
        stmt = stmt.where(Order.status == parse_order_status(status).value)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0

    rows = db.scalars(
        stmt.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return list(rows), int(total)


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit
