# storefront/services/stripe_client.py
from typing import Any, Dict, Optional

import stripe

from storefront.domain.errors import InvalidSignatureError, PaymentProviderError
from storefront.utils.logging import get_logger
from storefront.utils.settings import STRIPE_CURRENCY, STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET

logger = get_logger(__name__)


def require_stripe():
    if not STRIPE_SECRET_KEY:
        raise PaymentProviderError("STRIPE_SECRET_KEY is not configured")
    stripe.api_key = STRIPE_SECRET_KEY


def create_payment_intent(amount: int, metadata: Dict[str, str], currency: str = STRIPE_CURRENCY):
    require_stripe()
    try:
        return stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
            metadata=metadata,
        )
    except stripe.StripeError as e:
        logger.error(f"Payment intent creation failed: {e}")
        raise PaymentProviderError(f"Payment provider error: {e.user_message or e}") from e


def parse_event(payload: bytes, sig_header: Optional[str], secret: str = STRIPE_WEBHOOK_SECRET) -> Any:
    if not sig_header:
        raise InvalidSignatureError("Missing stripe-signature header")
    if not secret:
        raise InvalidSignatureError("Webhook secret is not configured")
    try:
        return stripe.Webhook.construct_event(payload=payload, sig_header=sig_header, secret=secret)
    except ValueError as e:
        raise InvalidSignatureError(f"Webhook invalid: {e}") from e
    except stripe.SignatureVerificationError as e:
        raise InvalidSignatureError(f"Webhook invalid: {e}") from e
