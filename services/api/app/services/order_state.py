"""Order lifecycle and payment-status transitions.

Lifecycle: pending -> confirmed -> processing -> shipped -> delivered, with cancelled
reachable from pending, confirmed and processing. Payment: pending -> paid | failed,
paid -> refunded.
"""

from __future__ import annotations

import os

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session

from packages.shared.schemas.events import EventTypeV1
from packages.shared.schemas.order_v1 import OrderStatusV1, PaymentStatusV1
from services.api.app.db.database import atomic
from services.api.app.db.models import Order, utcnow
from services.api.app.services.auth import Principal
from services.api.app.services.catalog import adjust_stock
from services.api.app.services.errors import (
    ForbiddenError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotCancellableError,
)
from services.api.app.services.order_events import record_order_event

logger = structlog.get_logger(__name__)

CANCELLABLE_STATUSES = frozenset(
    {OrderStatusV1.PENDING, OrderStatusV1.CONFIRMED, OrderStatusV1.PROCESSING}
)

ORDER_TRANSITIONS: dict[OrderStatusV1, frozenset[OrderStatusV1]] = {
    OrderStatusV1.PENDING: frozenset({OrderStatusV1.CONFIRMED, OrderStatusV1.CANCELLED}),
    OrderStatusV1.CONFIRMED: frozenset({OrderStatusV1.PROCESSING, OrderStatusV1.CANCELLED}),
    OrderStatusV1.PROCESSING: frozenset({OrderStatusV1.SHIPPED, OrderStatusV1.CANCELLED}),
    OrderStatusV1.SHIPPED: frozenset({OrderStatusV1.DELIVERED}),
    OrderStatusV1.DELIVERED: frozenset(),
    OrderStatusV1.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatusV1, frozenset[PaymentStatusV1]] = {
    PaymentStatusV1.PENDING: frozenset({PaymentStatusV1.PAID, PaymentStatusV1.FAILED}),
    PaymentStatusV1.PAID: frozenset({PaymentStatusV1.REFUNDED}),
    PaymentStatusV1.FAILED: frozenset(),
    PaymentStatusV1.REFUNDED: frozenset(),
}


def parse_order_status(value: str) -> OrderStatusV1:
    try:
        return OrderStatusV1(value)
    except ValueError as e:
        raise InvalidStatusError(value) from e


def can_transition(current: OrderStatusV1, requested: OrderStatusV1) -> bool:
    return requested in ORDER_TRANSITIONS[current]


def ensure_payment_transition(current: PaymentStatusV1, requested: PaymentStatusV1) -> None:
    if requested not in PAYMENT_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, requested.value)


def strict_transitions_enabled() -> bool:
    raw = os.getenv("STOREFRONT_STRICT_STATUS_TRANSITIONS", "false")
    return raw.strip().lower() in {"1", "true", "yes", "y"}


def cancel_order(db: Session, order_id: str, requester: Principal) -> Order:
    with atomic(db):
        order = db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        if order.user_id != requester.user_id and not requester.is_admin:
            raise ForbiddenError("Only the order owner or an administrator can cancel it")

        current = OrderStatusV1(order.status)
        if current not in CANCELLABLE_STATUSES:
            raise OrderNotCancellableError(current.value)

        _claim_cancellation(db, order)
        _restore_stock(db, order)

        record_order_event(
            db,
            order=order,
            event_type=EventTypeV1.ORDER_CANCELLED,
            user_id=requester.user_id,
            payload={"previous_status": current.value, "by_admin": requester.is_admin},
        )

    logger.info(
        "Order cancelled",
        order_id=order_id,
        requester_id=requester.user_id,
        previous_status=current.value,
    )
    return order


def update_order_status(
    db: Session,
    order_id: str,
    new_status: str,
    *,
    actor: Principal,
    strict: bool | None = None,
) -> Order:
    """Administrative status overwrite.

    By default only membership in the six known statuses is checked. In strict mode the
    forward graph is enforced and entering ``cancelled`` restores stock like a cancellation.
    """

    requested = parse_order_status(new_status)
    if strict is None:
        strict = strict_transitions_enabled()

    with atomic(db):
        order = db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")

        current = OrderStatusV1(order.status)

        if strict and requested != current:
            if not can_transition(current, requested):
                raise InvalidTransitionError(current.value, requested.value)
            if requested == OrderStatusV1.CANCELLED:
                _claim_cancellation(db, order)
                _restore_stock(db, order)

        order.status = requested.value
        order.updated_at = utcnow()

        record_order_event(
            db,
            order=order,
            event_type=EventTypeV1.ORDER_STATUS_UPDATED,
            user_id=actor.user_id,
            payload={"from": current.value, "to": requested.value, "strict": strict},
        )

    logger.info(
        "Order status updated",
        order_id=order_id,
        from_status=current.value,
        to_status=requested.value,
        actor_id=actor.user_id,
    )
    return order


def _claim_cancellation(db: Session, order: Order) -> None:
    # Conditional write so two concurrent cancellations cannot both restore stock.
    result = db.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.status.in_([s.value for s in CANCELLABLE_STATUSES]),
        )
        .values(status=OrderStatusV1.CANCELLED.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.refresh(order)
        raise OrderNotCancellableError(order.status)

    db.refresh(order)


def _restore_stock(db: Session, order: Order) -> None:
    for item in order.items:
        adjust_stock(db, item.product_id, item.quantity)
