# storefront/api/routers/admin_orders.py
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import ValidationError as SchemaError
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.order import OrderStatus
from storefront.domain.errors import StoreError
from storefront.domain.schemas import (
    AdminOrderCreateIn,
    AdminOrderStatusIn,
    AdminOrderUpdateIn,
    OrderFilters,
    OrderOut,
    OrderPage,
)
from storefront.services.order_service import OrderService
from storefront.utils.security import require_admin

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return OrderService(db)


def _issues(error: SchemaError):
    return error.errors(include_url=False, include_context=False, include_input=False)


def _parse_date_range(date_range: Optional[str]):
    # "2024-01-01,2024-01-31"; both ends or nothing
    if not date_range:
        return None, None
    parts = [p.strip() for p in date_range.split(",")]
    if len(parts) != 2 or not all(parts):
        return None, None
    try:
        return datetime.fromisoformat(parts[0]), datetime.fromisoformat(parts[1])
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid dateRange: {date_range}")


@router.get("", response_model=OrderPage)
def list_orders(
    order_id: Optional[str] = Query(None, alias="orderId"),
    customer_name: Optional[str] = Query(None, alias="customerName"),
    status: Optional[str] = Query(None),
    date_range: Optional[str] = Query(None, alias="dateRange"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    date_from, date_to = _parse_date_range(date_range)
    try:
        filters = OrderFilters(
            order_id=order_id,
            customer=customer_name,
            # unknown status values are ignored rather than rejected
            status=status if status in OrderStatus.__members__ else None,
            date_from=date_from,
            date_to=date_to,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except SchemaError as e:
        raise HTTPException(status_code=400, detail=_issues(e))
    return get_service(db).list_orders(filters)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(payload: AdminOrderCreateIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.create_admin_order(payload)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.get_order(order_id)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(order_id: str, body: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """
    {"status": ...} alone changes the status only; anything else must be a
    full order update (addresses, status and the complete item list).
    """
    svc = get_service(db)
    try:
        status_update = AdminOrderStatusIn.model_validate(body)
    except SchemaError as status_error:
        try:
            full_update = AdminOrderUpdateIn.model_validate(body)
        except SchemaError as full_error:
            raise HTTPException(status_code=400, detail={
                "message": "Validation Error",
                "errors": {
                    "statusUpdate": _issues(status_error),
                    "fullUpdate": _issues(full_error),
                },
            })
        try:
            return svc.update_order(order_id, full_update)
        except StoreError as e:
            raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        return svc.update_status(order_id, status_update.status)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{order_id}")
def delete_order(order_id: str, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        svc.delete_order(order_id)
    except StoreError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"message": "Order deleted successfully"}
