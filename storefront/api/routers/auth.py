# storefront/api/routers/auth.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import StoreError
from storefront.domain.schemas import CartOut, SessionIn
from storefront.services.cart_service import CartService
from storefront.services.session_events import LoggedIn, LoggedOut, SessionEventBus
from storefront.utils.security import get_optional_user, require_user
from storefront.utils.settings import AUTH_COOKIE_NAME

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_session_bus(db: Session = Depends(get_db)) -> SessionEventBus:
    bus = SessionEventBus()
    CartService(db).subscribe(bus)
    return bus


@router.post("/session", response_model=CartOut)
def start_session(
    payload: SessionIn,
    user: Dict[str, Any] = Depends(require_user),
    bus: SessionEventBus = Depends(get_session_bus),
    db: Session = Depends(get_db),
):
    """Hands the guest cart over to the signed-in user; returns the merged cart."""
    try:
        bus.publish(LoggedIn(user_id=user["userId"], guest_items=payload.items))
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"success": True, "items": CartService(db).fetch(user["userId"])}


@router.post("/logout")
def logout(
    response: Response,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    bus: SessionEventBus = Depends(get_session_bus),
):
    if user:
        bus.publish(LoggedOut(user_id=user["userId"]))
    response.delete_cookie(AUTH_COOKIE_NAME)
    return {"success": True}
