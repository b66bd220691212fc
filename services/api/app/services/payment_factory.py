from __future__ import annotations

import os

from services.api.app.services.payment_base import PaymentProcessor
from services.api.app.services.payment_mock import MockPaymentProcessor


def get_payment_processor() -> PaymentProcessor:
    """Select a payment processor based on env vars.

    Defaults to the mock processor so tests and local dev are deterministic unless explicitly
    configured otherwise.
    """

    mode = os.getenv("STOREFRONT_PAYMENT_PROCESSOR", "mock").strip().lower()

    if mode == "mock":
        settle_status = os.getenv("STOREFRONT_MOCK_PAYMENT_STATUS", "succeeded").strip()
        return MockPaymentProcessor(settle_status=settle_status)

    if mode == "stripe":
        from services.api.app.services.payment_stripe import StripePaymentProcessor

        return StripePaymentProcessor.from_env()

    raise ValueError(f"Unknown STOREFRONT_PAYMENT_PROCESSOR={mode!r}. Expected mock or stripe.")


def default_currency() -> str:
    return os.getenv("STOREFRONT_CURRENCY", "usd").strip().lower()
