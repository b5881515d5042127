# storefront/services/payment_service.py
from typing import Any, Callable, Dict

from storefront.domain.errors import ValidationError
from storefront.domain.schemas import PaymentIntentIn
from storefront.services import stripe_client
from storefront.services.payment_metadata import build_metadata
from storefront.services.pricing import calculate_totals, to_minor_units
from storefront.utils.logging import get_logger
from storefront.utils.settings import STRIPE_CURRENCY

logger = get_logger(__name__)


class PaymentIntentIssuer:
    """
    Prices a checkout cart and opens a payment intent for it.

    Prices are the client's snapshot; nothing is persisted here. The order is
    written later by the create-order call, carrying the intent id back.
    """

    def __init__(self, create_intent: Callable[..., Any] | None = None, currency: str = STRIPE_CURRENCY):
        self.create_intent = create_intent or stripe_client.create_payment_intent
        self.currency = currency

    def issue(self, payload: PaymentIntentIn) -> Dict[str, Any]:
        if not payload.items:
            raise ValidationError("Cart is empty. Cannot create payment intent.")
        if payload.shipping_address is None:
            raise ValidationError("Shipping address is required")

        totals = calculate_totals((i.price, i.quantity) for i in payload.items)
        metadata = build_metadata(payload.items, payload.shipping_address, payload.billing_address)

        intent = self.create_intent(
            amount=to_minor_units(totals.total),
            metadata=metadata,
            currency=self.currency,
        )

        logger.info(
            f"Payment intent {intent['id']} created for {len(payload.items)} items, "
            f"total {totals.total} {self.currency}"
        )

        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "total_amount": totals.total,
            "subtotal": totals.subtotal,
            "shipping": totals.shipping,
            "tax": totals.tax,
        }
