# storefront/api/routers/orders.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import UserOrdersOut
from storefront.services.order_service import OrderService
from storefront.utils.security import require_user

router = APIRouter(prefix="/api/user", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("/orders", response_model=UserOrdersOut)
def list_my_orders(
    user: Dict[str, Any] = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Orders of the signed-in user, newest first."""
    return {"orders": get_service(db).list_user_orders(user["userId"])}
