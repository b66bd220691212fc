from __future__ import annotations

from packages.shared.schemas.envelope_v1 import ErrorCategoryV1


class StorefrontError(Exception):
    """Base class for errors reported to API callers.

    Each subclass carries a stable category and the HTTP status it maps to. The message is
    human-readable and safe to return verbatim.
    """

    category: ErrorCategoryV1 = ErrorCategoryV1.STORAGE_ERROR
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailedError(StorefrontError):
    category = ErrorCategoryV1.VALIDATION_FAILED
    status_code = 400


class UnauthorizedError(StorefrontError):
    category = ErrorCategoryV1.UNAUTHORIZED
    status_code = 401


class ForbiddenError(StorefrontError):
    category = ErrorCategoryV1.FORBIDDEN
    status_code = 403


class NotFoundError(StorefrontError):
    category = ErrorCategoryV1.NOT_FOUND
    status_code = 404


class ConflictError(StorefrontError):
    category = ErrorCategoryV1.CONFLICT
    status_code = 409


class InvalidStatusError(StorefrontError):
    category = ErrorCategoryV1.INVALID_STATUS
    status_code = 400

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid order status provided: {value!r}")
        self.value = value


class InvalidTransitionError(StorefrontError):
    category = ErrorCategoryV1.INVALID_TRANSITION
    status_code = 400

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


class EmptyCartError(StorefrontError):
    category = ErrorCategoryV1.EMPTY_CART
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Cannot create order from empty cart")


class InsufficientStockError(StorefrontError):
    category = ErrorCategoryV1.INSUFFICIENT_STOCK
    status_code = 400

    def __init__(self, product_name: str) -> None:
        super().__init__(
            f"Product {product_name} is out of stock or insufficient quantity available"
        )
        self.product_name = product_name


class OrderNotCancellableError(StorefrontError):
    category = ErrorCategoryV1.ORDER_NOT_CANCELLABLE
    status_code = 400

    def __init__(self, status: str) -> None:
        if status == "cancelled":
            message = "This order has already been cancelled"
        else:
            message = f"Order cannot be cancelled once it is {status}"
        super().__init__(message)
        self.status = status


class OrderNotPayableError(StorefrontError):
    category = ErrorCategoryV1.ORDER_NOT_PAYABLE
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Cancelled orders cannot be paid")


class AlreadyPaidError(StorefrontError):
    category = ErrorCategoryV1.ALREADY_PAID
    status_code = 400

    def __init__(self) -> None:
        super().__init__("This order has already been paid")


class PaymentNotCompletedError(StorefrontError):
    category = ErrorCategoryV1.PAYMENT_NOT_COMPLETED
    status_code = 400

    def __init__(self, message: str = "Payment has not been completed successfully") -> None:
        super().__init__(message)


class AccountHasOpenOrdersError(StorefrontError):
    category = ErrorCategoryV1.ACCOUNT_HAS_OPEN_ORDERS
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Account cannot be deleted while there are open orders")


class PaymentError(StorefrontError):
    category = ErrorCategoryV1.PAYMENT_ERROR
    status_code = 502


class StorageError(StorefrontError):
    category = ErrorCategoryV1.STORAGE_ERROR
    status_code = 500
