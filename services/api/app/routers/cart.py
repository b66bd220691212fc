from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from packages.shared.schemas.envelope_v1 import EnvelopeV1
from services.api.app.db.database import atomic
from services.api.app.db.deps import get_db
from services.api.app.deps import get_principal
from services.api.app.models.cart import AddToCartRequest, CartOut, UpdateCartRequest
from services.api.app.services.auth import Principal
from services.api.app.services.cart import (
    add_item,
    clear_cart,
    get_or_create_cart,
    remove_item,
    update_item,
)

router = APIRouter()


@router.get("/cart", response_model=EnvelopeV1[CartOut])
def get_cart(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[CartOut]:
    with atomic(db):
        cart = get_or_create_cart(db, principal.user_id)
    return EnvelopeV1[CartOut](success=True, data=CartOut.from_row(cart))


@router.post("/cart/add", response_model=EnvelopeV1[CartOut])
def add_to_cart(
    payload: AddToCartRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[CartOut]:
    cart = add_item(db, principal.user_id, payload.product_id, payload.quantity)
    return EnvelopeV1[CartOut](
        success=True,
        message="Item added to cart successfully",
        data=CartOut.from_row(cart),
    )


@router.put("/cart/update", response_model=EnvelopeV1[CartOut])
def update_cart(
    payload: UpdateCartRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[CartOut]:
    cart = update_item(db, principal.user_id, payload.product_id, payload.quantity)
    return EnvelopeV1[CartOut](
        success=True,
        message="Cart updated successfully",
        data=CartOut.from_row(cart),
    )


@router.delete("/cart/remove/{product_id}", response_model=EnvelopeV1[CartOut])
def remove_from_cart(
    product_id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[CartOut]:
    cart = remove_item(db, principal.user_id, product_id)
    return EnvelopeV1[CartOut](
        success=True,
        message="Item removed from cart successfully",
        data=CartOut.from_row(cart),
    )


@router.delete("/cart/clear", response_model=EnvelopeV1[CartOut])
def clear(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[CartOut]:
    cart = clear_cart(db, principal.user_id)
    return EnvelopeV1[CartOut](
        success=True,
        message="Cart cleared successfully",
        data=CartOut.from_row(cart),
    )
