from __future__ import annotations

from packages.shared.schemas.envelope_v1 import CamelModel


class TokenOut(CamelModel):
    token: str
    user_id: str
    is_admin: bool
