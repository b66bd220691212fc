from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from packages.shared.schemas.envelope_v1 import EnvelopeV1, PaginationV1
from services.api.app.db.deps import get_db
from services.api.app.deps import require_admin
from services.api.app.models.order import OrderOut, UpdateOrderStatusRequest
from services.api.app.services.auth import Principal
from services.api.app.services.order_queries import list_orders, total_pages
from services.api.app.services.order_state import update_order_status

router = APIRouter(prefix="/admin")


@router.get("/orders", response_model=EnvelopeV1[list[OrderOut]])
def list_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: str | None = None,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EnvelopeV1[list[OrderOut]]:
    del admin

    orders, total = list_orders(db, status=status, page=page, limit=limit)
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


@router.put("/orders/{order_id}/status", response_model=EnvelopeV1[OrderOut])
def set_order_status(
    order_id: str,
    payload: UpdateOrderStatusRequest,
    admin: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EnvelopeV1[OrderOut]:
    order = update_order_status(db, order_id, payload.status, actor=admin)
    return EnvelopeV1[OrderOut](
        success=True,
        message="Order status updated successfully",
        data=OrderOut.from_row(order),
    )
