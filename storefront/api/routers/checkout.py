# storefront/api/routers/checkout.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import CreateOrderIn, CreateOrderOut, PaymentIntentIn, PaymentIntentOut
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentIntentIssuer
from storefront.utils.security import get_optional_user

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


def get_issuer() -> PaymentIntentIssuer:
    return PaymentIntentIssuer()


def get_service(db: Session):
    return OrderService(db)


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    payload: PaymentIntentIn,
    issuer: PaymentIntentIssuer = Depends(get_issuer),
):
    try:
        return issuer.issue(payload)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/create-order", response_model=CreateOrderOut)
def create_order(
    payload: CreateOrderIn,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Guests can check out too; an invalid token is treated as a guest."""
    svc = get_service(db)
    try:
        order = svc.create_checkout_order(user["userId"] if user else None, payload)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"order_id": order["id"], "order": order}
