# storefront/repos/catalog_repo.py
from typing import Iterable, List, Optional, Set

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductVariantModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def existing_variant_ids(self, variant_ids: Iterable[str]) -> Set[str]:
        ids = set(variant_ids)
        if not ids:
            return set()
        rows = self.db.execute(
            select(ProductVariantModel.id).where(ProductVariantModel.id.in_(ids))
        ).scalars().all()
        return set(rows)

    def missing_variant_ids(self, variant_ids: Iterable[str]) -> List[str]:
        ids = list(dict.fromkeys(variant_ids))
        found = self.existing_variant_ids(ids)
        return [i for i in ids if i not in found]

    def find_variant(self, variant_id: str, lock: bool = False) -> Optional[ProductVariantModel]:
        stmt = select(ProductVariantModel).where(ProductVariantModel.id == variant_id)
        if lock:
            # FOR UPDATE where supported, always re-read the current stock
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def decrement_stock(self, variant_id: str, quantity: int) -> int:
        """Conditional decrement; returns rowcount (0 means not enough stock)."""
        stmt = (
            update(ProductVariantModel)
            .where(
                ProductVariantModel.id == variant_id,
                ProductVariantModel.stock >= quantity,
            )
            .values(stock=ProductVariantModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount
