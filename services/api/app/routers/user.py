from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from packages.shared.schemas.envelope_v1 import EnvelopeV1, PaginationV1
from services.api.app.db.deps import get_db
from services.api.app.deps import get_principal
from services.api.app.models.order import OrderOut
from services.api.app.services.accounts import delete_account
from services.api.app.services.auth import Principal
from services.api.app.services.order_queries import list_orders, total_pages

router = APIRouter()


@router.get("/user/orders", response_model=EnvelopeV1[list[OrderOut]])
def get_user_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = None,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[list[OrderOut]]:
    orders, total = list_orders(
        db,
        user_id=principal.user_id,
        status=status,
        page=page,
        limit=limit,
    )
    return EnvelopeV1[list[OrderOut]](
        success=True,
        data=[OrderOut.from_row(o) for o in orders],
        pagination=PaginationV1(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
        ),
    )


@router.delete("/user/account", response_model=EnvelopeV1[None])
def delete_user_account(
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[None]:
    delete_account(db, principal)
    return EnvelopeV1[None](success=True, message="Account deleted successfully")
