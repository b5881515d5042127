from decimal import Decimal

import pytest

from conftest import WEBHOOK_SECRET, InMemoryEventLedger, address, payment_event, sign
from storefront.data.models import OrderModel, OrderStatus
from storefront.domain.errors import InvalidSignatureError, OrderNotFoundError
from storefront.repos.order_repo import OrderRepo
from storefront.services.webhook_service import PaymentWebhookHandler
from storefront.utils.retry import RetryPolicy


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, order_id, status):
        self.sent.append((order_id, status))
        return True


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def ledger():
    return InMemoryEventLedger()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def handler(db, sleeps, ledger, notifier):
    policy = RetryPolicy(max_attempts=3, delay_seconds=1, retry_on=(OrderNotFoundError,), sleep=sleeps.append)
    return PaymentWebhookHandler(OrderRepo(db), policy, ledger, secret=WEBHOOK_SECRET, notifications=notifier)


def _order(db, intent="pi_1", status=OrderStatus.PENDING) -> OrderModel:
    order = OrderModel(
        guest_email="ada@example.com",
        status=status,
        total=Decimal("100.00"),
        shipping_address=address(),
        payment_intent_id=intent,
    )
    db.add(order)
    db.commit()
    return order


def _deliver(handler, intent="pi_1", event_id="evt_1", event_type="payment_intent.succeeded"):
    payload = payment_event(intent, event_id=event_id, event_type=event_type)
    return handler.handle(payload.encode(), sign(payload))


def _status(db, order_id):
    db.expire_all()
    return db.get(OrderModel, order_id).status


def test_succeeded_event_marks_order_paid(db, handler, notifier, ledger):
    order = _order(db)
    result = _deliver(handler)

    assert result == {"success": True, "transitioned": True}
    assert _status(db, order.id) == OrderStatus.PAID
    assert notifier.sent == [(order.id, "PAID")]
    assert ledger.seen("evt_1")


def test_same_event_twice_is_a_no_op(db, handler, notifier):
    order = _order(db)
    _deliver(handler)
    assert _deliver(handler) == {"success": True}
    assert _status(db, order.id) == OrderStatus.PAID
    assert len(notifier.sent) == 1


def test_new_event_for_already_paid_order_does_not_regress(db, handler, notifier):
    order = _order(db, status=OrderStatus.SHIPPED)
    result = _deliver(handler, event_id="evt_2")

    assert result == {"success": True, "transitioned": False}
    assert _status(db, order.id) == OrderStatus.SHIPPED
    assert notifier.sent == []


def test_unknown_intent_retries_then_gives_up(db, handler, sleeps, ledger):
    with pytest.raises(OrderNotFoundError):
        _deliver(handler, intent="pi_missing")

    assert sleeps == [1, 1]
    assert not ledger.seen("evt_1")


def test_order_committed_between_attempts_is_found(db, ledger, notifier):
    created = []

    def sleep_then_commit_order(seconds):
        if not created:
            created.append(_order(db, intent="pi_late"))

    policy = RetryPolicy(max_attempts=3, delay_seconds=1, retry_on=(OrderNotFoundError,), sleep=sleep_then_commit_order)
    handler = PaymentWebhookHandler(OrderRepo(db), policy, ledger, secret=WEBHOOK_SECRET, notifications=notifier)

    result = _deliver(handler, intent="pi_late")

    assert result["transitioned"] is True
    assert _status(db, created[0].id) == OrderStatus.PAID


def test_other_event_types_are_acknowledged(db, handler):
    order = _order(db)
    assert _deliver(handler, event_type="payment_intent.created") == {"received": True}
    assert _status(db, order.id) == OrderStatus.PENDING


def test_bad_signature_changes_nothing(db, handler):
    order = _order(db)
    payload = payment_event("pi_1")
    with pytest.raises(InvalidSignatureError):
        handler.handle(payload.encode(), sign(payload, secret="whsec_other"))
    assert _status(db, order.id) == OrderStatus.PENDING


def test_missing_signature_header(db, handler):
    with pytest.raises(InvalidSignatureError):
        handler.handle(payment_event("pi_1").encode(), None)


def test_tampered_payload_rejected(db, handler):
    _order(db)
    payload = payment_event("pi_1")
    header = sign(payload)
    with pytest.raises(InvalidSignatureError):
        handler.handle(payment_event("pi_other").encode(), header)
