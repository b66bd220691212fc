from __future__ import annotations

from dataclasses import replace
from threading import Lock

from services.api.app.services.payment_base import PaymentIntent


class InMemoryIntentStore:
    """Process-local intent registry backing the mock payment processor."""

    def __init__(self) -> None:
        self._intents: dict[str, PaymentIntent] = {}
        self._lock = Lock()

    def save_intent(self, intent: PaymentIntent) -> None:
        with self._lock:
            self._intents[intent.id] = intent

    def get_intent(self, intent_id: str) -> PaymentIntent | None:
        with self._lock:
            return self._intents.get(intent_id)

    def mark_status(self, intent_id: str, status: str) -> PaymentIntent:
        with self._lock:
            intent = self._intents[intent_id]
            updated = replace(intent, status=status)
            self._intents[intent_id] = updated
            return updated


intent_store = InMemoryIntentStore()
