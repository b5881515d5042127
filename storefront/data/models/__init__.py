# every model is imported here so Base.metadata knows all tables

from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel, OrderItemModel, OrderStatus

__all__ = [
    "ProductModel",
    "ProductVariantModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "OrderStatus",
]
