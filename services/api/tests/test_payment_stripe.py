from __future__ import annotations

import io
import json
import socket
import urllib.error
import urllib.parse

import pytest

from services.api.app.services import payment_stripe
from services.api.app.services.payment_base import (
    PaymentProcessorError,
    PaymentProcessorResponseError,
    PaymentProcessorTimeoutError,
)
from services.api.app.services.payment_factory import get_payment_processor
from services.api.app.services.payment_mock import MockPaymentProcessor
from services.api.app.services.payment_stripe import StripePaymentProcessor


class _FakeResponse:
    def __init__(self, body: dict) -> None:
        self._raw = json.dumps(body).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        return None


INTENT_PAYLOAD = {
    "id": "pi_123",
    "client_secret": "pi_123_secret_abc",
    "status": "requires_payment_method",
    "amount": 3159,
    "currency": "usd",
    "metadata": {"order_id": "o-1"},
}


@pytest.fixture()
def processor(monkeypatch: pytest.MonkeyPatch) -> StripePaymentProcessor:
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_API_BASE_URL", "https://stripe.test/")
    monkeypatch.setenv("STOREFRONT_PAYMENT_TIMEOUT_SECONDS", "2.5")
    return StripePaymentProcessor.from_env()


def test_create_intent_sends_form_request(
    processor: StripePaymentProcessor, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict = {}

    def _urlopen(req, timeout: float):
        seen["req"] = req
        seen["timeout"] = timeout
        return _FakeResponse(INTENT_PAYLOAD)

    monkeypatch.setattr(payment_stripe.urllib.request, "urlopen", _urlopen)

    intent = processor.create_intent(
        amount_cents=3159, currency="usd", metadata={"order_id": "o-1"}
    )

    req = seen["req"]
    assert req.full_url == "https://stripe.test/v1/payment_intents"
    assert req.get_method() == "POST"
    assert req.get_header("Authorization") == "Bearer sk_test_123"
    form = urllib.parse.parse_qs(req.data.decode("utf-8"))
    assert form["amount"] == ["3159"]
    assert form["currency"] == ["usd"]
    assert form["metadata[order_id]"] == ["o-1"]
    assert seen["timeout"] == 2.5

    assert intent.id == "pi_123"
    assert intent.amount_cents == 3159
    assert intent.metadata == {"order_id": "o-1"}


def test_retrieve_intent_uses_get(
    processor: StripePaymentProcessor, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict = {}

    def _urlopen(req, timeout: float):
        del timeout
        seen["req"] = req
        return _FakeResponse(dict(INTENT_PAYLOAD, status="succeeded"))

    monkeypatch.setattr(payment_stripe.urllib.request, "urlopen", _urlopen)

    intent = processor.retrieve_intent("pi_123")

    assert seen["req"].get_method() == "GET"
    assert seen["req"].full_url == "https://stripe.test/v1/payment_intents/pi_123"
    assert intent.status == "succeeded"


def test_http_error_carries_processor_message(
    processor: StripePaymentProcessor, monkeypatch: pytest.MonkeyPatch
) -> None:
    body = json.dumps({"error": {"message": "No such payment_intent"}}).encode("utf-8")

    def _urlopen(req, timeout: float):
        del timeout
        raise urllib.error.HTTPError(req.full_url, 404, "Not Found", {}, io.BytesIO(body))

    monkeypatch.setattr(payment_stripe.urllib.request, "urlopen", _urlopen)

    with pytest.raises(PaymentProcessorResponseError) as excinfo:
        processor.retrieve_intent("pi_missing")

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "No such payment_intent"


@pytest.mark.parametrize(
    "exc",
    [socket.timeout("timed out"), urllib.error.URLError(socket.timeout("timed out"))],
)
def test_timeouts_are_reported(
    processor: StripePaymentProcessor, monkeypatch: pytest.MonkeyPatch, exc: Exception
) -> None:
    def _urlopen(req, timeout: float):
        del req, timeout
        raise exc

    monkeypatch.setattr(payment_stripe.urllib.request, "urlopen", _urlopen)

    with pytest.raises(PaymentProcessorTimeoutError):
        processor.retrieve_intent("pi_123")


def test_unreachable_and_malformed_responses(
    processor: StripePaymentProcessor, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _unreachable(req, timeout: float):
        del req, timeout
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(payment_stripe.urllib.request, "urlopen", _unreachable)
    with pytest.raises(PaymentProcessorError, match="unreachable"):
        processor.retrieve_intent("pi_123")

    monkeypatch.setattr(
        payment_stripe.urllib.request, "urlopen", lambda req, timeout: _FakeResponse({"id": "x"})
    )
    with pytest.raises(PaymentProcessorError, match="shape"):
        processor.retrieve_intent("pi_123")


def test_factory_selects_processor(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STOREFRONT_PAYMENT_PROCESSOR", "mock")
    assert isinstance(get_payment_processor(), MockPaymentProcessor)

    monkeypatch.setenv("STOREFRONT_PAYMENT_PROCESSOR", "stripe")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    assert isinstance(get_payment_processor(), StripePaymentProcessor)

    monkeypatch.delenv("STRIPE_SECRET_KEY")
    with pytest.raises(ValueError):
        get_payment_processor()

    monkeypatch.setenv("STOREFRONT_PAYMENT_PROCESSOR", "paypal")
    with pytest.raises(ValueError):
        get_payment_processor()
