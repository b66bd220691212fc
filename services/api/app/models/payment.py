from __future__ import annotations

from pydantic import Field

from packages.shared.schemas.envelope_v1 import CamelModel


class CreatePaymentIntentRequest(CamelModel):
    order_id: str = Field(..., min_length=1)


class PaymentIntentOut(CamelModel):
    client_secret: str
    payment_intent_id: str


class ConfirmPaymentRequest(CamelModel):
    payment_intent_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)
