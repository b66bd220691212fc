from __future__ import annotations

from uuid import uuid4

from services.api.app.services.payment_base import PaymentIntent, PaymentProcessorError
from services.api.app.services.store import InMemoryIntentStore, intent_store


class MockPaymentProcessor:
    """Deterministic processor for local dev and tests.

    Intents settle immediately to ``settle_status``, emulating a test card that the client
    has already confirmed. Use the store's ``mark_status`` to simulate other outcomes.
    """

    name = "MOCK"

    def __init__(
        self,
        *,
        settle_status: str = "succeeded",
        store: InMemoryIntentStore | None = None,
    ) -> None:
        self._settle_status = settle_status
        self._store = store or intent_store

    def create_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        if amount_cents <= 0:
            raise PaymentProcessorError("Amount must be a positive number of minor units")

        intent_id = f"pi_mock_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
            status=self._settle_status,
            amount_cents=amount_cents,
            currency=currency,
            metadata=dict(metadata),
        )
        self._store.save_intent(intent)
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        intent = self._store.get_intent(intent_id)
        if intent is None:
            raise PaymentProcessorError(f"No such payment_intent: {intent_id}")
        return intent
