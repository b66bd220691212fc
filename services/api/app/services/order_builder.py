"""Cart to order conversion.

Validates a cart snapshot against live stock, prices it under the checkout policy and writes
the order, its items, the stock reservations and the cart clear as a single transaction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

import structlog
from sqlalchemy.orm import Session

from packages.shared.schemas.events import EventTypeV1
from packages.shared.schemas.order_v1 import OrderStatusV1, PaymentStatusV1
from services.api.app.db.database import atomic
from services.api.app.db.models import Address, Order, OrderItem
from services.api.app.services.cart import clear_cart_items, get_snapshot
from services.api.app.services.catalog import adjust_stock, get_product
from services.api.app.services.errors import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    ValidationFailedError,
)
from services.api.app.services.order_events import record_order_event

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CheckoutPolicy:
    tax_rate: Decimal = Decimal("0.08")
    free_shipping_threshold_cents: int = 10_000
    flat_shipping_fee_cents: int = 999
    order_number_prefix: str = "ORD"

    @classmethod
    def from_env(cls) -> "CheckoutPolicy":
        return cls(
            tax_rate=Decimal(os.getenv("STOREFRONT_TAX_RATE", "0.08")),
            free_shipping_threshold_cents=int(
                os.getenv("STOREFRONT_FREE_SHIPPING_THRESHOLD_CENTS", "10000")
            ),
            flat_shipping_fee_cents=int(os.getenv("STOREFRONT_FLAT_SHIPPING_FEE_CENTS", "999")),
            order_number_prefix=os.getenv("STOREFRONT_ORDER_PREFIX", "ORD").strip().upper(),
        )


@dataclass(frozen=True, slots=True)
class OrderTotals:
    subtotal_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int


def compute_totals(subtotal_cents: int, policy: CheckoutPolicy) -> OrderTotals:
    tax_cents = int(
        (Decimal(subtotal_cents) * policy.tax_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    )

    if subtotal_cents >= policy.free_shipping_threshold_cents:
        shipping_cents = 0
    else:
        shipping_cents = policy.flat_shipping_fee_cents

    return OrderTotals(
        subtotal_cents=subtotal_cents,
        tax_cents=tax_cents,
        shipping_cents=shipping_cents,
        total_cents=subtotal_cents + tax_cents + shipping_cents,
    )


def generate_order_number(prefix: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"{prefix}-{now:%Y%m%d}-{uuid4().hex[:8].upper()}"


def create_order(
    db: Session,
    user_id: str,
    *,
    shipping_address: Address,
    billing_address: Address,
    payment_method: str,
    policy: CheckoutPolicy | None = None,
) -> Order:
    policy = policy or CheckoutPolicy.from_env()

    payment_method = payment_method.strip()
    if not payment_method:
        raise ValidationFailedError("paymentMethod is required")

    with atomic(db):
        snapshot = get_snapshot(db, user_id)
        if snapshot.is_empty or snapshot.cart_id is None:
            raise EmptyCartError()

        # Stock may have moved since the lines were added; re-check every line.
        product_names: dict[str, str] = {}
        for line in snapshot.lines:
            product = get_product(db, line.product_id)
            if product is None:
                raise NotFoundError(f"Product {line.product_id} not found")
            if not product.in_stock or product.stock_quantity < line.quantity:
                raise InsufficientStockError(product.name)
            product_names[line.product_id] = product.name

        subtotal_cents = snapshot.subtotal_cents
        if subtotal_cents != snapshot.cached_total_cents:
            logger.warning(
                "Cart cached total disagrees with line sum",
                cart_id=snapshot.cart_id,
                cached_total_cents=snapshot.cached_total_cents,
                line_sum_cents=subtotal_cents,
            )

        totals = compute_totals(subtotal_cents, policy)

        order = Order(
            id=uuid4().hex,
            user_id=user_id,
            order_number=generate_order_number(policy.order_number_prefix),
            status=OrderStatusV1.PENDING.value,
            payment_method=payment_method,
            payment_status=PaymentStatusV1.PENDING.value,
            payment_intent_id=None,
            shipping_address=shipping_address,
            billing_address=billing_address,
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            shipping_cents=totals.shipping_cents,
            total_cents=totals.total_cents,
        )
        db.add(order)

        for position, line in enumerate(snapshot.lines):
            order.items.append(
                OrderItem(
                    id=uuid4().hex,
                    product_id=line.product_id,
                    position=position,
                    product_name=product_names[line.product_id],
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    line_total_cents=line.line_total_cents,
                )
            )
            adjust_stock(db, line.product_id, -line.quantity)

        clear_cart_items(db, snapshot.cart_id)

        record_order_event(
            db,
            order=order,
            event_type=EventTypeV1.ORDER_CREATED,
            user_id=user_id,
            payload={
                "order_number": order.order_number,
                "total_cents": totals.total_cents,
                "items": [
                    {"product_id": line.product_id, "quantity": line.quantity}
                    for line in snapshot.lines
                ],
            },
        )

    logger.info(
        "Order created",
        order_id=order.id,
        order_number=order.order_number,
        user_id=user_id,
        total_cents=order.total_cents,
        line_count=len(snapshot.lines),
    )
    return order
