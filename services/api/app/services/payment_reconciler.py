"""Two-step payment: create an intent for the order total, then confirm it.

Confirmation never trusts the client. The order is only marked paid after the processor
itself reports an intent for this order and amount as ``succeeded``.

Processor calls run between short transactions, never inside one.
"""

from __future__ import annotations

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from packages.shared.schemas.events import EventTypeV1
from packages.shared.schemas.order_v1 import OrderStatusV1, PaymentStatusV1
from services.api.app.db.database import atomic
from services.api.app.db.models import Order, utcnow
from services.api.app.services.errors import (
    AlreadyPaidError,
    NotFoundError,
    OrderNotPayableError,
    PaymentError,
    PaymentNotCompletedError,
)
from services.api.app.services.order_events import record_order_event
from services.api.app.services.order_state import ensure_payment_transition
from services.api.app.services.payment_base import (
    INTENT_CANCELED,
    INTENT_SUCCEEDED,
    PaymentIntent,
    PaymentProcessor,
    PaymentProcessorError,
)

logger = structlog.get_logger(__name__)


class PaymentReconciler:
    def __init__(self, processor: PaymentProcessor, *, currency: str = "usd") -> None:
        self._processor = processor
        self._currency = currency

    @property
    def processor_name(self) -> str:
        return self._processor.name

    def create_payment_intent(self, db: Session, *, order_id: str, user_id: str) -> PaymentIntent:
        """Return the order's live intent, or create one for the order total.

        Repeated calls for an unpaid order hand back the same intent while the processor
        still holds it, uncancelled, for the same amount.
        """

        with atomic(db):
            order = _owned_order(db, order_id, user_id)
            _ensure_payable(order)
            amount_cents = order.total_cents
            recorded_intent_id = order.payment_intent_id

        intent = self._reusable_intent(recorded_intent_id, amount_cents)
        if intent is None:
            try:
                intent = self._processor.create_intent(
                    amount_cents=amount_cents,
                    currency=self._currency,
                    metadata={"order_id": order_id, "user_id": user_id},
                )
            except PaymentProcessorError as e:
                logger.warning(
                    "Payment intent creation failed",
                    order_id=order_id,
                    processor=self._processor.name,
                    error=str(e),
                )
                raise PaymentError("Failed to create payment intent") from e

        with atomic(db):
            order = _owned_order(db, order_id, user_id)
            _ensure_payable(order)

            if order.payment_intent_id != intent.id:
                order.payment_intent_id = intent.id
                order.updated_at = utcnow()
                record_order_event(
                    db,
                    order=order,
                    event_type=EventTypeV1.PAYMENT_INTENT_CREATED,
                    user_id=user_id,
                    payload={
                        "payment_intent_id": intent.id,
                        "amount_cents": intent.amount_cents,
                        "currency": intent.currency,
                        "processor": self._processor.name,
                    },
                )

        logger.info(
            "Payment intent ready",
            order_id=order_id,
            payment_intent_id=intent.id,
            amount_cents=intent.amount_cents,
            reused=intent.id == recorded_intent_id,
        )
        return intent

    def confirm_payment(
        self,
        db: Session,
        *,
        order_id: str,
        user_id: str,
        payment_intent_id: str,
    ) -> Order:
        """Mark the order paid once the processor reports the intent as succeeded.

        Any intent the processor attributes to this order for its full total is accepted,
        including one superseded on the order by a later create call.
        """

        with atomic(db):
            order = _owned_order(db, order_id, user_id)
            _ensure_payable(order)
            if order.payment_intent_id is None:
                raise PaymentNotCompletedError("No payment intent has been created for this order")
            amount_cents = order.total_cents

        try:
            intent = self._processor.retrieve_intent(payment_intent_id)
        except PaymentProcessorError as e:
            logger.warning(
                "Payment verification failed",
                order_id=order_id,
                payment_intent_id=payment_intent_id,
                processor=self._processor.name,
                error=str(e),
            )
            raise PaymentError("Failed to verify payment with processor") from e

        if intent.metadata.get("order_id") != order_id or intent.amount_cents != amount_cents:
            logger.warning(
                "Payment intent does not belong to order",
                order_id=order_id,
                payment_intent_id=payment_intent_id,
                intent_order_id=intent.metadata.get("order_id"),
                intent_amount_cents=intent.amount_cents,
            )
            raise PaymentNotCompletedError("Payment intent does not match this order")

        if intent.status != INTENT_SUCCEEDED:
            logger.info(
                "Payment not completed",
                order_id=order_id,
                payment_intent_id=payment_intent_id,
                intent_status=intent.status,
            )
            raise PaymentNotCompletedError()

        with atomic(db):
            order = _owned_order(db, order_id, user_id)
            _ensure_payable(order)
            ensure_payment_transition(
                PaymentStatusV1(order.payment_status), PaymentStatusV1.PAID
            )

            # Conditional on pending so a replayed confirmation cannot pay twice.
            result = db.execute(
                update(Order)
                .where(
                    Order.id == order.id,
                    Order.payment_status == PaymentStatusV1.PENDING.value,
                )
                .values(
                    payment_status=PaymentStatusV1.PAID.value,
                    status=OrderStatusV1.CONFIRMED.value,
                    payment_intent_id=intent.id,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AlreadyPaidError()
            db.refresh(order)

            record_order_event(
                db,
                order=order,
                event_type=EventTypeV1.PAYMENT_CONFIRMED,
                user_id=user_id,
                payload={
                    "payment_intent_id": intent.id,
                    "amount_cents": intent.amount_cents,
                },
            )

        logger.info("Payment confirmed", order_id=order_id, payment_intent_id=intent.id)
        return order

    def _reusable_intent(self, intent_id: str | None, amount_cents: int) -> PaymentIntent | None:
        if intent_id is None:
            return None

        try:
            intent = self._processor.retrieve_intent(intent_id)
        except PaymentProcessorError as e:
            logger.warning(
                "Recorded payment intent unavailable, creating a new one",
                payment_intent_id=intent_id,
                processor=self._processor.name,
                error=str(e),
            )
            return None

        if intent.status == INTENT_CANCELED or intent.amount_cents != amount_cents:
            return None
        return intent


def _owned_order(db: Session, order_id: str, user_id: str) -> Order:
    order = db.scalars(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    ).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _ensure_payable(order: Order) -> None:
    if order.payment_status == PaymentStatusV1.PAID.value:
        raise AlreadyPaidError()
    if order.status == OrderStatusV1.CANCELLED.value:
        raise OrderNotPayableError()
