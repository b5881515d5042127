# storefront/domain/schemas.py
import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from storefront.data.models.order import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------------------------------------------------------------- addresses

class Address(CamelModel):
    """
    Shipping/billing address snapshot.

    Required keys are checked here; anything else the client sends is kept
    and stored verbatim with the order.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    state: str = ""
    phone: str = ""

    def snapshot(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# --------------------------------------------------------------------- cart

class CartItemIn(CamelModel):
    """Schema for a cart line coming from the client."""

    product_variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Quantity (must be > 0)")
    size: str = ""
    id: Optional[str] = None
    product_id: Optional[str] = None
    color: Optional[str] = None
    name: Optional[str] = None
    price: Optional[Decimal] = None
    image: Optional[str] = None


class CartSyncIn(CamelModel):
    """Schema for the cart persistence endpoint."""

    items: List[CartItemIn] = Field(default_factory=list)
    action: Literal["fetch", "sync", "merge"] = "sync"


class CartItemOut(CamelModel):
    """Schema for a denormalized cart line (response)."""

    id: str
    product_id: str
    product_variant_id: str
    name: str
    price: Decimal
    image: str
    size: str
    color: str
    quantity: int


class CartOut(CamelModel):
    success: bool = True
    items: List[CartItemOut]


class SessionIn(CamelModel):
    """Guest cart handed over when a visitor signs in."""

    items: List[CartItemIn] = Field(default_factory=list)


# ----------------------------------------------------------------- checkout

class CheckoutItemIn(CamelModel):
    """Schema for a checkout line; price is the client's snapshot."""

    product_variant_id: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    size: str = ""
    color: str = ""
    id: Optional[str] = None
    product_id: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None

    @property
    def line_id(self) -> str:
        if self.id:
            return self.id
        return f"{self.product_id or self.product_variant_id}-{self.size}-{self.color}"


class PaymentIntentIn(CamelModel):
    items: List[CheckoutItemIn] = Field(default_factory=list)
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None


class PaymentIntentOut(CamelModel):
    client_secret: str
    payment_intent_id: str
    total_amount: Decimal
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal


class CreateOrderIn(PaymentIntentIn):
    payment_intent_id: str = Field(..., min_length=1)
    total_amount: Optional[Decimal] = None


# ------------------------------------------------------------------- orders

class OrderItemOut(CamelModel):
    id: str
    product_variant_id: str
    quantity: int
    price: Decimal
    selected_size: Optional[str] = None


class OrderOut(CamelModel):
    """Schema for an order (response)."""

    id: str
    user_id: Optional[str] = None
    guest_email: Optional[str] = None
    status: OrderStatus
    total: Decimal
    shipping: Decimal
    tax: Decimal
    shipping_address: Dict[str, Any]
    billing_address: Optional[Dict[str, Any]] = None
    payment_intent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemOut]


class CreateOrderOut(CamelModel):
    order_id: str
    order: OrderOut


class OrderPage(CamelModel):
    orders: List[OrderOut]
    total_orders: int
    page: int
    limit: int
    total_pages: int


class UserOrdersOut(CamelModel):
    orders: List[OrderOut]


class AdminOrderItemIn(CamelModel):
    product_variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    selected_size: Optional[str] = None


class AdminOrderCreateIn(CamelModel):
    user_id: Optional[str] = None
    guest_email: Optional[str] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    order_items: List[AdminOrderItemIn] = Field(default_factory=list)


class AdminOrderStatusIn(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    status: OrderStatus


class AdminOrderItemEdit(CamelModel):
    id: Optional[str] = None  # missing for new lines
    product_variant_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=Decimal("0.01"))
    selected_size: Optional[str] = None


class AdminOrderUpdateIn(CamelModel):
    status: OrderStatus
    guest_email: Optional[str] = None
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_intent_id: Optional[str] = None
    order_items: List[AdminOrderItemEdit]

    @field_validator("shipping_address", "billing_address", mode="before")
    @classmethod
    def _parse_address(cls, value):
        # the back-office form posts addresses as JSON strings
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value


class OrderFilters(BaseModel):
    order_id: Optional[str] = None
    customer: Optional[str] = None
    status: Optional[OrderStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    sort_by: Literal["createdAt", "updatedAt", "total", "status"] = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
