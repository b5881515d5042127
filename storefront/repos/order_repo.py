# storefront/repos/order_repo.py
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import OrderModel, OrderStatus
from storefront.domain.schemas import OrderFilters

_SORT_COLUMNS = {
    "createdAt": OrderModel.created_at,
    "updatedAt": OrderModel.updated_at,
    "total": OrderModel.total,
    "status": OrderModel.status,
}


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        return order

    def get_order(self, order_id: str) -> Optional[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.id == order_id).options(selectinload(OrderModel.items))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_payment_intent(self, payment_intent_id: str) -> Optional[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.payment_intent_id == payment_intent_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_user(self, user_id: str) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .options(selectinload(OrderModel.items))
            .order_by(OrderModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def search(self, filters: OrderFilters) -> Tuple[List[OrderModel], int]:
        conditions = []
        if filters.order_id:
            conditions.append(OrderModel.id == filters.order_id)
        if filters.customer:
            conditions.append(or_(
                OrderModel.guest_email.ilike(f"%{filters.customer}%"),
                OrderModel.user_id.ilike(f"%{filters.customer}%"),
            ))
        if filters.status:
            conditions.append(OrderModel.status == filters.status)
        if filters.date_from:
            conditions.append(OrderModel.created_at >= filters.date_from)
        if filters.date_to:
            conditions.append(OrderModel.created_at <= filters.date_to)

        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(*conditions)
        ).scalar_one()

        column = _SORT_COLUMNS[filters.sort_by]
        ordering = column.asc() if filters.sort_order == "asc" else column.desc()
        stmt = (
            select(OrderModel)
            .where(*conditions)
            .options(selectinload(OrderModel.items))
            .order_by(ordering, OrderModel.id)
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total

    def mark_paid(self, payment_intent_id: str) -> int:
        """PENDING -> PAID for the order carrying this intent; returns rowcount."""
        stmt = (
            update(OrderModel)
            .where(
                OrderModel.payment_intent_id == payment_intent_id,
                OrderModel.status == OrderStatus.PENDING,
            )
            .values(status=OrderStatus.PAID, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def delete_order(self, order: OrderModel) -> None:
        self.db.delete(order)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order
