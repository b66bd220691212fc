from __future__ import annotations

from dataclasses import replace

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from packages.shared.schemas.events import EventTypeV1
from packages.shared.schemas.order_v1 import OrderStatusV1
from services.api.app.db.database import atomic
from services.api.app.db.models import Address, Order, User, utcnow
from services.api.app.services.auth import Principal
from services.api.app.services.cart import get_cart
from services.api.app.services.errors import AccountHasOpenOrdersError, NotFoundError
from services.api.app.services.order_events import record_order_event

logger = structlog.get_logger(__name__)

OPEN_ORDER_STATUSES = (
    OrderStatusV1.PENDING.value,
    OrderStatusV1.CONFIRMED.value,
    OrderStatusV1.PROCESSING.value,
)


def anonymize_address(address: Address) -> Address:
    return replace(
        address,
        first_name="Deleted",
        last_name="User",
        email="deleted@deleted.com",
        phone="0000000000",
    )


def delete_account(db: Session, principal: Principal) -> None:
    """Soft-delete the caller's account.

    Orders are kept for record keeping with personal address fields overwritten; monetary
    and line data stay untouched.
    """

    with atomic(db):
        user = db.get(User, principal.user_id)
        if user is None or user.deleted_at is not None:
            raise NotFoundError("User account not found")

        open_orders = db.scalars(
            select(Order.id)
            .where(Order.user_id == user.id, Order.status.in_(OPEN_ORDER_STATUSES))
            .limit(1)
        ).first()
        if open_orders is not None:
            raise AccountHasOpenOrdersError()

        cart = get_cart(db, user.id)
        if cart is not None:
            db.delete(cart)

        orders = db.scalars(select(Order).where(Order.user_id == user.id)).all()
        for order in orders:
            order.shipping_address = anonymize_address(order.shipping_address)
            order.billing_address = anonymize_address(order.billing_address)
            order.updated_at = utcnow()
            record_order_event(
                db,
                order=order,
                event_type=EventTypeV1.ORDER_ANONYMIZED,
                user_id=user.id,
            )

        user.email = f"deleted-{user.id}@deleted.invalid"
        user.first_name = "Deleted"
        user.last_name = "User"
        user.deleted_at = utcnow()

    logger.info("Account deleted", user_id=principal.user_id, anonymized_orders=len(orders))
