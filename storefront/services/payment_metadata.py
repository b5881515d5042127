# storefront/services/payment_metadata.py
"""
Compact encodings for payment intent metadata.

The processor caps every metadata value, so each field degrades through
progressively smaller forms until one fits. If even the last form is too
long the caller gets `MetadataTooLargeError`, unless truncation is enabled
in settings.
"""
import json
from typing import Callable, Dict, List, Optional, Sequence

from storefront.domain.errors import MetadataTooLargeError
from storefront.domain.schemas import Address, CheckoutItemIn
from storefront.utils.logging import get_logger
from storefront.utils.settings import STRIPE_METADATA_LIMIT, STRIPE_METADATA_TRUNCATE

logger = get_logger(__name__)


def _compact(value) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _first_fit(field: str, candidates: Sequence[Callable[[], str]], limit: int, truncate: bool) -> str:
    encoded = ""
    for build in candidates:
        encoded = build()
        if len(encoded) <= limit:
            return encoded

    if truncate:
        logger.warning(f"Metadata {field} truncated from {len(encoded)} to {limit} characters")
        return encoded[:limit]
    raise MetadataTooLargeError(field, len(encoded), limit)


def encode_order_items(
    items: List[CheckoutItemIn],
    limit: int = STRIPE_METADATA_LIMIT,
    truncate: bool = STRIPE_METADATA_TRUNCATE,
) -> str:
    def full():
        return _compact([
            {"i": i.line_id, "q": i.quantity, "s": i.size, "c": i.color, "p": float(i.price)}
            for i in items
        ])

    def without_price():
        return _compact([{"i": i.line_id, "q": i.quantity, "s": i.size, "c": i.color} for i in items])

    def positional():
        return ",".join(f"{i.line_id}:{i.quantity}:{i.size}:{i.color}" for i in items)

    return _first_fit("orderItems", (full, without_price, positional), limit, truncate)


def encode_address(
    address: Optional[Address],
    field: str = "shippingAddress",
    limit: int = STRIPE_METADATA_LIMIT,
    truncate: bool = STRIPE_METADATA_TRUNCATE,
) -> str:
    if address is None:
        return ""

    def full():
        return _compact({
            "fn": address.first_name,
            "ln": address.last_name,
            "e": address.email,
            "p": address.phone,
            "a": address.address,
            "c": address.city,
            "s": address.state,
            "z": address.zip_code,
            "co": address.country,
        })

    def simple():
        return (
            f"{address.first_name} {address.last_name},{address.email},"
            f"{address.address},{address.city},{address.state} {address.zip_code}"
        )

    return _first_fit(field, (full, simple), limit, truncate)


def build_metadata(
    items: List[CheckoutItemIn],
    shipping_address: Address,
    billing_address: Optional[Address] = None,
    limit: int = STRIPE_METADATA_LIMIT,
    truncate: bool = STRIPE_METADATA_TRUNCATE,
) -> Dict[str, str]:
    return {
        "orderItems": encode_order_items(items, limit, truncate),
        "shippingAddress": encode_address(shipping_address, "shippingAddress", limit, truncate),
        "billingAddress": encode_address(billing_address or shipping_address, "billingAddress", limit, truncate),
    }
