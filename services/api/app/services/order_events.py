from __future__ import annotations

from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from packages.shared.schemas.events import EventTypeV1
from services.api.app.db.models import Order, OrderEvent


def record_order_event(
    db: Session,
    *,
    order: Order,
    event_type: EventTypeV1,
    user_id: str | None,
    payload: dict | None = None,
) -> OrderEvent:
    """Append an event to the order's log inside the caller's transaction."""

    event = OrderEvent(
        id=uuid4().hex,
        order_id=order.id,
        user_id=user_id,
        event_type=event_type.value,
        event_payload_json=payload or {},
    )
    db.add(event)
    return event


def list_order_events(db: Session, order_id: str) -> list[OrderEvent]:
    return list(
        db.scalars(
            select(OrderEvent)
            .where(OrderEvent.order_id == order_id)
            .order_by(OrderEvent.created_at.asc())
        )
    )
