# storefront/api/routers/carts.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import CartOut, CartSyncIn
from storefront.services.cart_service import CartService
from storefront.utils.security import require_user

router = APIRouter(prefix="/api/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.post("/sync", response_model=CartOut)
def sync_cart(
    payload: CartSyncIn,
    user: Dict[str, Any] = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    fetch: return the stored cart
    sync: replace the stored cart with the payload
    merge: add the payload to the stored cart
    """
    svc = get_service(db)
    if payload.action == "fetch":
        return {"success": True, "items": svc.fetch(user["userId"])}
    try:
        items = svc.sync(user["userId"], payload.items, mode=payload.action)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "items": items}


@router.post("/clear")
def clear_cart(
    user: Dict[str, Any] = Depends(require_user),
    db: Session = Depends(get_db),
):
    get_service(db).clear(user["userId"])
    return {"success": True}
