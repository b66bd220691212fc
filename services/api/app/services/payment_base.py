from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

INTENT_SUCCEEDED = "succeeded"
INTENT_CANCELED = "canceled"


class PaymentProcessorError(Exception):
    """Base class for payment processor errors."""


class PaymentProcessorTimeoutError(PaymentProcessorError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Payment processor did not respond within {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class PaymentProcessorResponseError(PaymentProcessorError):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"Payment processor returned HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


@dataclass(frozen=True, slots=True)
class PaymentIntent:
    id: str
    client_secret: str
    status: str
    amount_cents: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)


class PaymentProcessor(Protocol):
    name: str

    def create_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent: ...

    def retrieve_intent(self, intent_id: str) -> PaymentIntent: ...
