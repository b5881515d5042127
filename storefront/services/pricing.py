# storefront/services/pricing.py
"""Pricing policy shared by the payment intent issuer and order creation."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple, Tuple

from storefront.utils.settings import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, TAX_RATE

CENT = Decimal("0.01")


class Totals(NamedTuple):
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_subtotal(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    """Sum of price * quantity over (price, quantity) pairs."""
    return to_money(sum((Decimal(str(price)) * qty for price, qty in lines), Decimal("0")))


def calculate_shipping(subtotal: Decimal) -> Decimal:
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return Decimal("0.00")
    return to_money(FLAT_SHIPPING_FEE)


def calculate_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * TAX_RATE)


def calculate_totals(lines: Iterable[Tuple[Decimal, int]]) -> Totals:
    subtotal = calculate_subtotal(lines)
    shipping = calculate_shipping(subtotal)
    tax = calculate_tax(subtotal)
    return Totals(subtotal, shipping, tax, subtotal + shipping + tax)


def to_minor_units(amount: Decimal) -> int:
    # 108.50 -> 10850
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
