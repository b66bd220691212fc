"""Shared response envelope (v1).

Every API response, success or failure, is wrapped in this envelope. Field names are
camelCase on the wire; snake_case is accepted on input.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorCategoryV1(str, Enum):
    VALIDATION_FAILED = "ValidationFailed"
    INVALID_STATUS = "InvalidStatus"
    INVALID_TRANSITION = "InvalidTransition"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    EMPTY_CART = "EmptyCart"
    INSUFFICIENT_STOCK = "InsufficientStock"
    ORDER_NOT_CANCELLABLE = "OrderNotCancellable"
    ORDER_NOT_PAYABLE = "OrderNotPayable"
    ALREADY_PAID = "AlreadyPaid"
    PAYMENT_NOT_COMPLETED = "PaymentNotCompleted"
    ACCOUNT_HAS_OPEN_ORDERS = "AccountHasOpenOrders"
    PAYMENT_ERROR = "PaymentError"
    STORAGE_ERROR = "StorageError"


class PaginationV1(CamelModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


class EnvelopeV1(CamelModel, Generic[DataT]):
    success: bool
    message: str | None = None
    data: DataT | None = None

    # Machine-readable category, only set on failures.
    error: ErrorCategoryV1 | None = None

    pagination: PaginationV1 | None = None
