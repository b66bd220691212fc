from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from services.api.app.db.database import atomic
from services.api.app.db.models import Cart, CartItem
from services.api.app.services.catalog import get_product
from services.api.app.services.errors import InsufficientStockError, NotFoundError


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True, slots=True)
class CartSnapshot:
    """Read-only copy of a user's cart taken at order-creation time."""

    cart_id: str | None
    user_id: str
    lines: tuple[CartLine, ...]
    cached_total_cents: int

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def subtotal_cents(self) -> int:
        return sum(line.line_total_cents for line in self.lines)


def get_cart(db: Session, user_id: str) -> Cart | None:
    return db.scalars(select(Cart).where(Cart.user_id == user_id)).first()


def get_or_create_cart(db: Session, user_id: str) -> Cart:
    cart = get_cart(db, user_id)
    if cart is None:
        cart = Cart(id=uuid4().hex, user_id=user_id, total_amount_cents=0, total_items=0)
        db.add(cart)
        db.flush()
    return cart


def get_snapshot(db: Session, user_id: str) -> CartSnapshot:
    cart = get_cart(db, user_id)
    if cart is None:
        return CartSnapshot(cart_id=None, user_id=user_id, lines=(), cached_total_cents=0)

    lines = tuple(
        CartLine(
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price_cents=item.price_cents,
        )
        for item in cart.items
    )
    return CartSnapshot(
        cart_id=cart.id,
        user_id=user_id,
        lines=lines,
        cached_total_cents=cart.total_amount_cents,
    )


def add_item(db: Session, user_id: str, product_id: str, quantity: int) -> Cart:
    with atomic(db):
        product = get_product(db, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        if not product.in_stock or product.stock_quantity < quantity:
            raise InsufficientStockError(product.name)

        cart = get_or_create_cart(db, user_id)
        existing = _find_item(cart, product_id)
        if existing is not None:
            new_quantity = existing.quantity + quantity
            if new_quantity > product.stock_quantity:
                raise InsufficientStockError(product.name)
            existing.quantity = new_quantity
        else:
            cart.items.append(
                CartItem(
                    id=uuid4().hex,
                    product_id=product_id,
                    quantity=quantity,
                    price_cents=product.price_cents,
                )
            )

        _recompute_totals(cart)

    return cart


def update_item(db: Session, user_id: str, product_id: str, quantity: int) -> Cart:
    """Set a line's quantity; zero removes the line."""

    with atomic(db):
        cart = get_cart(db, user_id)
        if cart is None:
            raise NotFoundError("Cart not found")

        item = _find_item(cart, product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")

        if quantity == 0:
            cart.items.remove(item)
        else:
            product = get_product(db, product_id)
            if product is None:
                raise NotFoundError("Product not found")
            if not product.in_stock or product.stock_quantity < quantity:
                raise InsufficientStockError(product.name)
            item.quantity = quantity

        _recompute_totals(cart)

    return cart


def remove_item(db: Session, user_id: str, product_id: str) -> Cart:
    with atomic(db):
        cart = get_cart(db, user_id)
        if cart is None:
            raise NotFoundError("Cart not found")

        item = _find_item(cart, product_id)
        if item is None:
            raise NotFoundError("Item not found in cart")

        cart.items.remove(item)
        _recompute_totals(cart)

    return cart


def clear_cart(db: Session, user_id: str) -> Cart:
    with atomic(db):
        cart = get_or_create_cart(db, user_id)
        clear_cart_items(db, cart.id)

    return cart


def clear_cart_items(db: Session, cart_id: str) -> None:
    """Delete every line of a cart and zero its cached totals.

    Joins the caller's transaction; nothing is committed here.
    """

    cart = db.get(Cart, cart_id)
    if cart is None:
        raise NotFoundError("Cart not found")

    cart.items.clear()
    cart.total_amount_cents = 0
    cart.total_items = 0


def _find_item(cart: Cart, product_id: str) -> CartItem | None:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def _recompute_totals(cart: Cart) -> None:
    cart.total_amount_cents = sum(item.price_cents * item.quantity for item in cart.items)
    cart.total_items = sum(item.quantity for item in cart.items)
