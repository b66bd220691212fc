from __future__ import annotations

from fastapi import APIRouter, Depends

from packages.shared.schemas.envelope_v1 import EnvelopeV1
from services.api.app.deps import get_principal
from services.api.app.models.auth import TokenOut
from services.api.app.services.auth import Principal, issue_token

router = APIRouter()


@router.post("/auth/refresh", response_model=EnvelopeV1[TokenOut])
def refresh_token(principal: Principal = Depends(get_principal)) -> EnvelopeV1[TokenOut]:
    return EnvelopeV1[TokenOut](
        success=True,
        message="Token refreshed successfully",
        data=TokenOut(
            token=issue_token(principal),
            user_id=principal.user_id,
            is_admin=principal.is_admin,
        ),
    )
