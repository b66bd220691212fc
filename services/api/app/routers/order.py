from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from packages.shared.schemas.envelope_v1 import EnvelopeV1
from packages.shared.schemas.events import EventV1
from services.api.app.db.deps import get_db
from services.api.app.deps import get_principal
from services.api.app.models.order import CreateOrderRequest, OrderOut, event_out
from services.api.app.services.auth import Principal
from services.api.app.services.order_builder import create_order
from services.api.app.services.order_events import list_order_events
from services.api.app.services.order_queries import get_visible_order
from services.api.app.services.order_state import cancel_order

router = APIRouter()


@router.post("/orders", status_code=201, response_model=EnvelopeV1[OrderOut])
def create_order_from_cart(
    payload: CreateOrderRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[OrderOut]:
    order = create_order(
        db,
        principal.user_id,
        shipping_address=payload.shipping_address.to_address(),
        billing_address=payload.billing_address.to_address(),
        payment_method=payload.payment_method,
    )
    return EnvelopeV1[OrderOut](
        success=True,
        message="Order created successfully",
        data=OrderOut.from_row(order),
    )


@router.get("/orders/{order_id}", response_model=EnvelopeV1[OrderOut])
def get_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[OrderOut]:
    order = get_visible_order(db, order_id, principal)
    return EnvelopeV1[OrderOut](success=True, data=OrderOut.from_row(order))


@router.put("/orders/{order_id}/cancel", response_model=EnvelopeV1[OrderOut])
def cancel(
    order_id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[OrderOut]:
    order = cancel_order(db, order_id, principal)
    return EnvelopeV1[OrderOut](
        success=True,
        message="Order cancelled successfully",
        data=OrderOut.from_row(order),
    )


@router.get("/orders/{order_id}/events", response_model=EnvelopeV1[list[EventV1]])
def get_order_events(
    order_id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[list[EventV1]]:
    order = get_visible_order(db, order_id, principal)
    events = list_order_events(db, order.id)
    return EnvelopeV1[list[EventV1]](success=True, data=[event_out(e) for e in events])
