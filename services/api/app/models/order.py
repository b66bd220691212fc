from __future__ import annotations

from pydantic import Field

from packages.shared.schemas.envelope_v1 import CamelModel
from packages.shared.schemas.events import EventTypeV1, EventV1
from packages.shared.schemas.order_v1 import OrderStatusV1, PaymentStatusV1
from services.api.app.db.models import Address, Order, OrderEvent


class AddressPayload(CamelModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)

    def to_address(self) -> Address:
        return Address(**self.model_dump())

    @classmethod
    def from_address(cls, address: Address) -> "AddressPayload":
        return cls.model_construct(**vars(address))


class CreateOrderRequest(CamelModel):
    shipping_address: AddressPayload
    billing_address: AddressPayload
    payment_method: str = Field(..., min_length=1)


class UpdateOrderStatusRequest(CamelModel):
    status: str = Field(..., min_length=1)


class OrderItemOut(CamelModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price_cents: int
    line_total_cents: int


class OrderOut(CamelModel):
    id: str
    user_id: str
    order_number: str
    status: OrderStatusV1
    payment_method: str
    payment_status: PaymentStatusV1
    payment_intent_id: str | None = None

    shipping_address: AddressPayload
    billing_address: AddressPayload

    subtotal_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int

    items: list[OrderItemOut] = Field(default_factory=list)

    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, order: Order) -> "OrderOut":
        return cls(
            id=order.id,
            user_id=order.user_id,
            order_number=order.order_number,
            status=OrderStatusV1(order.status),
            payment_method=order.payment_method,
            payment_status=PaymentStatusV1(order.payment_status),
            payment_intent_id=order.payment_intent_id,
            shipping_address=AddressPayload.from_address(order.shipping_address),
            billing_address=AddressPayload.from_address(order.billing_address),
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            shipping_cents=order.shipping_cents,
            total_cents=order.total_cents,
            items=[
                OrderItemOut(
                    id=item.id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price_cents,
                    line_total_cents=item.line_total_cents,
                )
                for item in order.items
            ],
            created_at=order.created_at.isoformat(),
            updated_at=order.updated_at.isoformat(),
        )


def event_out(event: OrderEvent) -> EventV1:
    return EventV1(
        id=event.id,
        order_id=event.order_id,
        user_id=event.user_id,
        event_type=EventTypeV1(event.event_type),
        payload=event.event_payload_json,
        created_at=event.created_at.isoformat(),
    )
