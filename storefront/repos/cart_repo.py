# storefront/repos/cart_repo.py
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.product import ProductVariantModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: str) -> List[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .options(joinedload(CartItemModel.variant).joinedload(ProductVariantModel.product))
            .order_by(CartItemModel.id)
        )
        return list(self.db.execute(stmt).unique().scalars().all())

    def get_item(self, user_id: str, variant_id: str, size: str) -> Optional[CartItemModel]:
        stmt = select(CartItemModel).where(
            CartItemModel.user_id == user_id,
            CartItemModel.product_variant_id == variant_id,
            CartItemModel.selected_size == size,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        return item

    def add_items(self, items: List[CartItemModel]) -> None:
        self.db.add_all(items)

    def delete_items(self, user_id: str) -> int:
        result = self.db.execute(delete(CartItemModel).where(CartItemModel.user_id == user_id))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
