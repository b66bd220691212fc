from __future__ import annotations

import json
import os
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass

from services.api.app.services.payment_base import (
    PaymentIntent,
    PaymentProcessorError,
    PaymentProcessorResponseError,
    PaymentProcessorTimeoutError,
)


@dataclass(frozen=True, slots=True)
class _StripeConfig:
    api_key: str
    base_url: str
    timeout_seconds: float


class StripePaymentProcessor:
    """Stripe PaymentIntents over the REST API.

    The secret key is injected at construction; there is no process-wide client state.
    Every call is bounded by ``timeout_seconds`` and any transport or HTTP failure is raised
    as a PaymentProcessorError.

    Env vars:
    - STRIPE_SECRET_KEY (required)
    - STRIPE_API_BASE_URL (default: https://api.stripe.com)
    - STOREFRONT_PAYMENT_TIMEOUT_SECONDS (default: 10)
    """

    name = "STRIPE"

    def __init__(self, cfg: _StripeConfig) -> None:
        self._cfg = cfg

    @classmethod
    def from_env(cls) -> "StripePaymentProcessor":
        api_key = os.getenv("STRIPE_SECRET_KEY", "").strip()
        if not api_key:
            raise ValueError(
                "STRIPE_SECRET_KEY is required when STOREFRONT_PAYMENT_PROCESSOR=stripe"
            )

        return cls(
            _StripeConfig(
                api_key=api_key,
                base_url=os.getenv("STRIPE_API_BASE_URL", "https://api.stripe.com").rstrip("/"),
                timeout_seconds=float(os.getenv("STOREFRONT_PAYMENT_TIMEOUT_SECONDS", "10")),
            )
        )

    def create_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        form: dict[str, str] = {
            "amount": str(amount_cents),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
        }
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = value

        payload = self._request("POST", "/v1/payment_intents", form=form)
        return _intent_from_payload(payload)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        path = f"/v1/payment_intents/{urllib.parse.quote(intent_id, safe='')}"
        payload = self._request("GET", path)
        return _intent_from_payload(payload)

    def _request(self, method: str, path: str, *, form: dict[str, str] | None = None) -> dict:
        url = f"{self._cfg.base_url}{path}"
        data = urllib.parse.urlencode(form).encode("utf-8") if form is not None else None

        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Authorization", f"Bearer {self._cfg.api_key}")
        if data is not None:
            req.add_header("Content-Type", "application/x-www-form-urlencoded")

        try:
            with urllib.request.urlopen(req, timeout=self._cfg.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise PaymentProcessorResponseError(e.code, _error_message(body)) from e
        except (TimeoutError, socket.timeout) as e:
            raise PaymentProcessorTimeoutError(self._cfg.timeout_seconds) from e
        except urllib.error.URLError as e:
            if isinstance(e.reason, (TimeoutError, socket.timeout)):
                raise PaymentProcessorTimeoutError(self._cfg.timeout_seconds) from e
            raise PaymentProcessorError(f"Payment processor unreachable: {e.reason}") from e

        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise PaymentProcessorError("Payment processor returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise PaymentProcessorError(f"Unexpected payment processor response: {payload!r}")
        return payload


def _intent_from_payload(payload: dict) -> PaymentIntent:
    try:
        return PaymentIntent(
            id=str(payload["id"]),
            client_secret=str(payload.get("client_secret") or ""),
            status=str(payload["status"]),
            amount_cents=int(payload["amount"]),
            currency=str(payload.get("currency") or ""),
            metadata={str(k): str(v) for k, v in (payload.get("metadata") or {}).items()},
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PaymentProcessorError(f"Unexpected payment intent shape: {payload!r}") from e


def _error_message(body: str) -> str:
    try:
        parsed = json.loads(body)
        return str(parsed["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return body[:200]
