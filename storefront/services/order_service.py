# storefront/services/order_service.py
from decimal import Decimal
from math import ceil
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderItemModel, OrderModel, OrderStatus
from storefront.domain.errors import (
    InsufficientStockError,
    OrderNotFoundError,
    ValidationError,
    VariantReferenceError,
)
from storefront.domain.schemas import (
    AdminOrderCreateIn,
    AdminOrderUpdateIn,
    CreateOrderIn,
    OrderFilters,
    OrderOut,
)
from storefront.repos.catalog_repo import CatalogRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationService
from storefront.services.pricing import CENT, calculate_totals, to_money
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _items_total(items) -> Decimal:
    return to_money(sum((Decimal(str(i.price)) * i.quantity for i in items), Decimal("0")))


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


class OrderService:
    """
    Order domain: customer checkout, admin creation and edits, queries.

    Every command writes in a single transaction; on failure the session is
    rolled back so no partial order, item or stock change is left behind.
    """

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.catalog = CatalogRepo(db)
        self.notification_service = notifications or NotificationService()

    @staticmethod
    def to_dict(order: OrderModel) -> Dict[str, Any]:
        return OrderOut.model_validate(order).model_dump()

    def _get_or_raise(self, order_id: str) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    # ------------------------------------------------------------------ queries
    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self.to_dict(self._get_or_raise(order_id))

    def list_orders(self, filters: OrderFilters) -> Dict[str, Any]:
        orders, total = self.repo.search(filters)
        return {
            "orders": [self.to_dict(o) for o in orders],
            "total_orders": total,
            "page": filters.page,
            "limit": filters.limit,
            "total_pages": ceil(total / filters.limit) if total else 0,
        }

    def list_user_orders(self, user_id: str) -> List[Dict[str, Any]]:
        return [self.to_dict(o) for o in self.repo.list_for_user(user_id)]

    # ----------------------------------------------------------------- commands
    def create_checkout_order(self, user_id: Optional[str], payload: CreateOrderIn) -> Dict[str, Any]:
        """
        Use case: persist the order for a payment intent the customer just
        confirmed. Status starts PENDING; the webhook moves it to PAID.
        Stock is not touched on this path.
        """
        if not payload.items:
            raise ValidationError("Order has no items")
        if payload.shipping_address is None:
            raise ValidationError("Shipping address is required")

        missing = self.catalog.missing_variant_ids(i.product_variant_id for i in payload.items)
        if missing:
            logger.error(f"Missing product variant IDs: {missing}")
            raise VariantReferenceError(missing)

        if self.repo.get_by_payment_intent(payload.payment_intent_id):
            raise ValidationError(f"An order already exists for payment intent {payload.payment_intent_id}")

        totals = calculate_totals((i.price, i.quantity) for i in payload.items)
        if payload.total_amount is not None and abs(payload.total_amount - totals.total) > CENT:
            raise ValidationError(
                f"Total amount {payload.total_amount} does not match computed total {totals.total}"
            )

        shipping = payload.shipping_address.snapshot()
        billing = (payload.billing_address or payload.shipping_address).snapshot()

        order = OrderModel(
            user_id=user_id,
            guest_email=None if user_id else payload.shipping_address.email,
            status=OrderStatus.PENDING,
            total=totals.subtotal,
            shipping=totals.shipping,
            tax=totals.tax,
            shipping_address=shipping,
            billing_address=billing,
            payment_intent_id=payload.payment_intent_id,
            items=[
                OrderItemModel(
                    product_variant_id=i.product_variant_id,
                    quantity=i.quantity,
                    price=to_money(i.price),
                    selected_size=_blank_to_none(i.size),
                )
                for i in payload.items
            ],
        )

        try:
            self.repo.add_order(order)
            self.repo.commit()
        except IntegrityError as e:
            # unique payment_intent_id lost a race with a concurrent request
            self.repo.rollback()
            raise ValidationError(f"An order already exists for payment intent {payload.payment_intent_id}") from e

        logger.info(
            f"Order {order.id} created for payment intent {payload.payment_intent_id} "
            f"({'user ' + user_id if user_id else 'guest'}), total {totals.total}"
        )

        self.notification_service.send_order_notification(order.id, OrderStatus.PENDING.value)

        return self.get_order(order.id)

    def create_admin_order(self, payload: AdminOrderCreateIn) -> Dict[str, Any]:
        """
        Use case: back-office order entry.

        Prices come from the catalog and stock is decremented in the same
        transaction, row by row with a conditional UPDATE so stock can never
        go negative.
        """
        if not payload.user_id and not payload.guest_email:
            raise ValidationError("Either userId or guestEmail is required")
        if payload.shipping_address is None:
            raise ValidationError("Shipping address is required")
        if not payload.order_items:
            raise ValidationError("At least one order item is required")

        try:
            items = []
            for line in payload.order_items:
                variant = self.catalog.find_variant(line.product_variant_id, lock=True)
                if not variant:
                    raise VariantReferenceError([line.product_variant_id])
                if variant.stock < line.quantity:
                    raise InsufficientStockError(variant.id, line.quantity, variant.stock)

                if self.catalog.decrement_stock(variant.id, line.quantity) == 0:
                    # stock changed between the read and the update
                    raise InsufficientStockError(variant.id, line.quantity, variant.stock)
                logger.info(f"Stock of variant {variant.id} decremented by {line.quantity}")

                items.append(OrderItemModel(
                    product_variant_id=variant.id,
                    quantity=line.quantity,
                    price=to_money(variant.product.price),
                    selected_size=_blank_to_none(line.selected_size),
                ))

            shipping = payload.shipping_address.snapshot()
            order = OrderModel(
                user_id=payload.user_id,
                guest_email=payload.guest_email,
                status=OrderStatus.PENDING,
                total=_items_total(items),
                shipping=Decimal("0.00"),
                tax=Decimal("0.00"),
                shipping_address=shipping,
                billing_address=payload.billing_address.snapshot() if payload.billing_address else shipping,
                items=items,
            )
            self.repo.add_order(order)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Admin order creation rolled back: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Admin order {order.id} created with {len(items)} items, total {order.total}")
        return self.get_order(order.id)

    def update_status(self, order_id: str, status: OrderStatus) -> Dict[str, Any]:
        order = self._get_or_raise(order_id)
        previous = order.status
        order.status = status
        self.repo.commit()
        logger.info(f"Order {order_id} status {previous.value} -> {OrderStatus(status).value}")
        return self.get_order(order_id)

    def update_order(self, order_id: str, payload: AdminOrderUpdateIn) -> Dict[str, Any]:
        """
        Full admin edit. Line items are diffed against the stored ones:
        no id -> created, known id -> updated, stored but absent -> deleted.
        The total is recomputed from the resulting lines.
        """
        order = self._get_or_raise(order_id)

        existing = {item.id: item for item in order.items}
        unknown = [i.id for i in payload.order_items if i.id and i.id not in existing]
        if unknown:
            raise ValidationError(f"Order items not found on order {order_id}: {', '.join(unknown)}")

        missing = self.catalog.missing_variant_ids(i.product_variant_id for i in payload.order_items)
        if missing:
            raise VariantReferenceError(missing)

        try:
            order.guest_email = _blank_to_none(payload.guest_email)
            order.status = payload.status
            order.shipping_address = payload.shipping_address.snapshot()
            order.billing_address = payload.billing_address.snapshot() if payload.billing_address else None
            order.payment_intent_id = _blank_to_none(payload.payment_intent_id)

            keep_ids = {i.id for i in payload.order_items if i.id}
            for item in list(order.items):
                if item.id not in keep_ids:
                    order.items.remove(item)

            for line in payload.order_items:
                target = existing[line.id] if line.id else OrderItemModel()
                target.product_variant_id = line.product_variant_id
                target.quantity = line.quantity
                target.price = to_money(line.price)
                target.selected_size = _blank_to_none(line.selected_size)
                if not line.id:
                    order.items.append(target)

            order.total = _items_total(order.items)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Update of order {order_id} rolled back: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} updated, {len(payload.order_items)} items, total {order.total}")
        return self.get_order(order_id)

    def delete_order(self, order_id: str) -> None:
        order = self._get_or_raise(order_id)
        self.repo.delete_order(order)
        self.repo.commit()
        logger.info(f"Order {order_id} deleted")
