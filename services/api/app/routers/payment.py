from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from packages.shared.schemas.envelope_v1 import EnvelopeV1
from services.api.app.db.deps import get_db
from services.api.app.deps import get_principal
from services.api.app.models.order import OrderOut
from services.api.app.models.payment import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    PaymentIntentOut,
)
from services.api.app.services.auth import Principal
from services.api.app.services.errors import PaymentError
from services.api.app.services.payment_factory import default_currency, get_payment_processor
from services.api.app.services.payment_reconciler import PaymentReconciler

logger = structlog.get_logger(__name__)

router = APIRouter()


def _reconciler() -> PaymentReconciler:
    try:
        processor = get_payment_processor()
    except ValueError as e:
        logger.error("Payment processor misconfigured", error=str(e))
        raise PaymentError("Payment processor is not configured") from e
    return PaymentReconciler(processor, currency=default_currency())


@router.post("/payment/create-intent", response_model=EnvelopeV1[PaymentIntentOut])
def create_payment_intent(
    payload: CreatePaymentIntentRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[PaymentIntentOut]:
    intent = _reconciler().create_payment_intent(
        db,
        order_id=payload.order_id,
        user_id=principal.user_id,
    )
    return EnvelopeV1[PaymentIntentOut](
        success=True,
        data=PaymentIntentOut(client_secret=intent.client_secret, payment_intent_id=intent.id),
    )


@router.post("/payment/confirm", response_model=EnvelopeV1[OrderOut])
def confirm_payment(
    payload: ConfirmPaymentRequest,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EnvelopeV1[OrderOut]:
    order = _reconciler().confirm_payment(
        db,
        order_id=payload.order_id,
        user_id=principal.user_id,
        payment_intent_id=payload.payment_intent_id,
    )
    return EnvelopeV1[OrderOut](
        success=True,
        message="Payment confirmed successfully",
        data=OrderOut.from_row(order),
    )
