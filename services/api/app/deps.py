from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.api.app.services.auth import Principal, TokenError, decode_token
from services.api.app.services.errors import ForbiddenError, UnauthorizedError

_bearer = HTTPBearer(auto_error=False)


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    if credentials is None:
        raise UnauthorizedError("Authorization header is required")

    try:
        return decode_token(credentials.credentials)
    except TokenError as e:
        raise UnauthorizedError("Invalid or expired token") from e


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
    return principal
