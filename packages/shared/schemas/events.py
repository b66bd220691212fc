"""Shared order event schema (v1).

The backend stores an append-only order event log. Clients can consume these events to
render an order timeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from packages.shared.schemas.envelope_v1 import CamelModel


class EventTypeV1(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_STATUS_UPDATED = "ORDER_STATUS_UPDATED"
    PAYMENT_INTENT_CREATED = "PAYMENT_INTENT_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    ORDER_ANONYMIZED = "ORDER_ANONYMIZED"


class EventV1(CamelModel):
    id: str
    order_id: str
    user_id: str | None = None

    event_type: EventTypeV1
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
