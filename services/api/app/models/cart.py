from __future__ import annotations

from pydantic import Field

from packages.shared.schemas.envelope_v1 import CamelModel
from services.api.app.db.models import Cart


class AddToCartRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class UpdateCartRequest(CamelModel):
    product_id: str = Field(..., min_length=1)
    # Zero removes the line.
    quantity: int = Field(..., ge=0)


class CartItemOut(CamelModel):
    id: str
    product_id: str
    quantity: int
    price_cents: int
    line_total_cents: int


class CartOut(CamelModel):
    id: str
    user_id: str
    total_amount_cents: int
    total_items: int
    items: list[CartItemOut] = Field(default_factory=list)

    @classmethod
    def from_row(cls, cart: Cart) -> "CartOut":
        return cls(
            id=cart.id,
            user_id=cart.user_id,
            total_amount_cents=cart.total_amount_cents,
            total_items=cart.total_items,
            items=[
                CartItemOut(
                    id=item.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price_cents=item.price_cents,
                    line_total_cents=item.price_cents * item.quantity,
                )
                for item in cart.items
            ],
        )
