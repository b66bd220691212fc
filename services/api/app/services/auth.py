"""Signed bearer tokens carrying the request principal.

Tokens use the compact ``header.payload.signature`` layout with URL-safe base64 segments
and an HMAC-SHA256 signature over ``header.payload``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import time
from dataclasses import dataclass
from typing import Any

_ALGORITHM = "HS256"
_DEFAULT_TTL_SECONDS = 7 * 24 * 3600


class TokenError(Exception):
    """Raised when a token is malformed, tampered with or expired."""


@dataclass(frozen=True, slots=True)
class Principal:
    user_id: str
    is_admin: bool = False


@dataclass(frozen=True, slots=True)
class TokenConfig:
    secret: str
    ttl_seconds: int
    issuer: str

    @classmethod
    def from_env(cls) -> "TokenConfig":
        # Local-only default. Production must provide STOREFRONT_JWT_SECRET explicitly.
        secret = os.getenv("STOREFRONT_JWT_SECRET", "dev-secret-change-me")
        ttl_seconds = int(os.getenv("STOREFRONT_TOKEN_TTL_SECONDS", str(_DEFAULT_TTL_SECONDS)))
        issuer = os.getenv("STOREFRONT_TOKEN_ISSUER", "storefront")
        return cls(secret=secret, ttl_seconds=ttl_seconds, issuer=issuer)


def issue_token(
    principal: Principal,
    *,
    config: TokenConfig | None = None,
    now: int | None = None,
) -> str:
    cfg = config or TokenConfig.from_env()
    issued_at = int(time.time()) if now is None else now

    header = {"alg": _ALGORITHM, "typ": "JWT"}
    payload = {
        "sub": principal.user_id,
        "adm": principal.is_admin,
        "iss": cfg.issuer,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + cfg.ttl_seconds,
    }

    signing_input = f"{_b64encode_json(header)}.{_b64encode_json(payload)}"
    signature = _sign(signing_input, cfg.secret)
    return f"{signing_input}.{_b64encode(signature)}"


def decode_token(
    token: str,
    *,
    config: TokenConfig | None = None,
    now: int | None = None,
) -> Principal:
    cfg = config or TokenConfig.from_env()

    try:
        header_b64, payload_b64, signature_b64 = token.split(".")
    except ValueError as e:
        raise TokenError("Malformed token: expected 3 parts") from e

    try:
        header = _b64decode_json(header_b64)
        payload = _b64decode_json(payload_b64)
        signature = _b64decode(signature_b64)
    except (ValueError, TypeError) as e:
        raise TokenError("Malformed token encoding") from e

    if header.get("alg") != _ALGORITHM:
        raise TokenError(f"Unsupported algorithm: {header.get('alg')!r}")

    expected = _sign(f"{header_b64}.{payload_b64}", cfg.secret)
    if not hmac.compare_digest(signature, expected):
        raise TokenError("Invalid signature")

    current = int(time.time()) if now is None else now
    exp = payload.get("exp")
    if not isinstance(exp, int) or exp < current:
        raise TokenError("Token expired")
    if int(payload.get("nbf", 0)) > current:
        raise TokenError("Token not yet valid")
    if payload.get("iss") != cfg.issuer:
        raise TokenError("Unexpected issuer")

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise TokenError("Missing subject")

    return Principal(user_id=user_id, is_admin=bool(payload.get("adm", False)))


def _sign(signing_input: str, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input.encode(), hashlib.sha256).digest()


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64decode(data: str) -> bytes:
    padding = 4 - (len(data) % 4)
    if padding != 4:
        data += "=" * padding
    return base64.urlsafe_b64decode(data)


def _b64encode_json(data: dict[str, Any]) -> str:
    return _b64encode(json.dumps(data, separators=(",", ":")).encode())


def _b64decode_json(data: str) -> dict[str, Any]:
    decoded = json.loads(_b64decode(data))
    if not isinstance(decoded, dict):
        raise ValueError("Token segment is not a JSON object")
    return decoded
