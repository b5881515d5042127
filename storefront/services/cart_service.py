# storefront/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, List, Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart_item import CartItemModel
from storefront.domain.cart_store import line_key
from storefront.domain.errors import VariantReferenceError
from storefront.domain.schemas import CartItemIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalog_repo import CatalogRepo
from storefront.services.session_events import LoggedIn, LoggedOut, SessionEventBus
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

SyncMode = Literal["sync", "merge"]


class CartService:
    """
    Server-side cart of an authenticated user.

    Query: fetch (denormalized lines).
    Commands: sync (replace or merge), clear.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)

    # query
    def fetch(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            rows = self.repo.get_items(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Fetching cart for user {user_id} failed: {e}")
            return []
        return [self._to_line(row) for row in rows]

    @staticmethod
    def _to_line(row: CartItemModel) -> Dict[str, Any]:
        variant = row.variant
        product = variant.product
        return {
            "id": line_key(product.id, row.selected_size, variant.color),
            "product_id": product.id,
            "product_variant_id": variant.id,
            "name": product.name,
            "price": Decimal(str(product.price)),
            "image": variant.first_image,
            "size": row.selected_size,
            "color": variant.color,
            "quantity": row.quantity,
        }

    # commands
    def sync(self, user_id: str, items: List[CartItemIn], mode: SyncMode = "sync") -> List[Dict[str, Any]]:
        missing = self.catalog.missing_variant_ids(i.product_variant_id for i in items)
        if missing:
            raise VariantReferenceError(missing)

        incoming = self._collapse(items)

        try:
            if mode == "merge":
                for (variant_id, size), qty in incoming.items():
                    existing = self.repo.get_item(user_id, variant_id, size)
                    if existing:
                        existing.quantity += qty
                    else:
                        self.repo.add_item(CartItemModel(
                            user_id=user_id,
                            product_variant_id=variant_id,
                            selected_size=size,
                            quantity=qty,
                        ))
            else:
                self.repo.delete_items(user_id)
                self.repo.add_items([
                    CartItemModel(user_id=user_id, product_variant_id=variant_id, selected_size=size, quantity=qty)
                    for (variant_id, size), qty in incoming.items()
                ])
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise

        logger.info(f"Cart {mode} for user {user_id}: {len(incoming)} incoming lines")
        return self.fetch(user_id)

    @staticmethod
    def _collapse(items: List[CartItemIn]) -> Dict[tuple, int]:
        # duplicate (variant, size) pairs in one payload are summed
        collapsed: Dict[tuple, int] = {}
        for item in items:
            key = (item.product_variant_id, item.size or "")
            collapsed[key] = collapsed.get(key, 0) + item.quantity
        return collapsed

    def clear(self, user_id: str) -> int:
        removed = self.repo.delete_items(user_id)
        self.repo.commit()
        logger.info(f"Cart of user {user_id} cleared ({removed} lines)")
        return removed

    # session transitions
    def subscribe(self, bus: SessionEventBus) -> None:
        bus.subscribe(LoggedIn, self._on_logged_in)
        bus.subscribe(LoggedOut, self._on_logged_out)

    def _on_logged_in(self, event: LoggedIn) -> None:
        if event.guest_items:
            self.sync(event.user_id, event.guest_items, mode="merge")

    def _on_logged_out(self, event: LoggedOut) -> None:
        self.clear(event.user_id)
