import json
from decimal import Decimal

import pytest

from conftest import address
from storefront.domain.errors import PaymentProviderError, ValidationError
from storefront.domain.schemas import PaymentIntentIn
from storefront.services import stripe_client
from storefront.services.payment_service import PaymentIntentIssuer


class FakeProcessor:
    def __init__(self):
        self.calls = []

    def __call__(self, amount, metadata, currency):
        self.calls.append({"amount": amount, "metadata": metadata, "currency": currency})
        return {"id": "pi_123", "client_secret": "pi_123_secret_abc"}


def _payload(items=None, **overrides):
    data = {
        "items": items if items is not None else [
            {"id": "p1-9-black", "productVariantId": "v1", "price": "50.00", "quantity": 2, "size": "9", "color": "black"},
        ],
        "shippingAddress": address(),
    }
    data.update(overrides)
    return PaymentIntentIn.model_validate(data)


def test_issue_prices_cart_and_opens_intent():
    processor = FakeProcessor()
    result = PaymentIntentIssuer(create_intent=processor, currency="usd").issue(_payload())

    assert result["client_secret"] == "pi_123_secret_abc"
    assert result["payment_intent_id"] == "pi_123"
    assert result["total_amount"] == Decimal("108.50")
    assert result["subtotal"] == Decimal("100.00")
    assert result["shipping"] == Decimal("0.00")
    assert result["tax"] == Decimal("8.50")

    [call] = processor.calls
    assert call["amount"] == 10850
    assert call["currency"] == "usd"
    assert json.loads(call["metadata"]["orderItems"])[0]["i"] == "p1-9-black"
    assert call["metadata"]["billingAddress"] == call["metadata"]["shippingAddress"]


def test_small_cart_pays_shipping():
    processor = FakeProcessor()
    items = [{"productVariantId": "v1", "price": "25.00", "quantity": 2, "size": "9", "color": "black"}]
    result = PaymentIntentIssuer(create_intent=processor).issue(_payload(items=items))

    assert result["total_amount"] == Decimal("64.24")
    assert processor.calls[0]["amount"] == 6424


def test_empty_cart_rejected():
    processor = FakeProcessor()
    with pytest.raises(ValidationError):
        PaymentIntentIssuer(create_intent=processor).issue(_payload(items=[]))
    assert processor.calls == []


def test_missing_shipping_address_rejected():
    with pytest.raises(ValidationError):
        PaymentIntentIssuer(create_intent=FakeProcessor()).issue(_payload(shippingAddress=None))


def test_missing_secret_key_is_a_provider_error(monkeypatch):
    monkeypatch.setattr(stripe_client, "STRIPE_SECRET_KEY", "")
    with pytest.raises(PaymentProviderError):
        stripe_client.require_stripe()


def test_stripe_sdk_receives_intent_parameters(monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"id": "pi_sdk", "client_secret": "secret"}

    monkeypatch.setattr(stripe_client.stripe.PaymentIntent, "create", fake_create)
    intent = stripe_client.create_payment_intent(1000, {"orderItems": "[]"}, currency="usd")

    assert intent["id"] == "pi_sdk"
    assert captured["amount"] == 1000
    assert captured["automatic_payment_methods"] == {"enabled": True}
