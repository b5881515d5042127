# storefront/services/webhook_service.py
from typing import Any, Dict, Optional

from storefront.data.models.order import OrderStatus
from storefront.domain.errors import OrderNotFoundError
from storefront.repos.order_repo import OrderRepo
from storefront.services import stripe_client
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.retry import RetryPolicy
from storefront.utils.settings import STRIPE_WEBHOOK_SECRET

logger = get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class PaymentWebhookHandler:
    """
    Applies payment processor events to orders.

    payment_intent.succeeded moves the matching order PENDING -> PAID. The
    webhook can arrive before the create-order call has committed, so a
    missing order is retried with the injected policy before giving up with
    OrderNotFoundError (the processor then redelivers).

    Redelivery of the same event is harmless: the ledger short-circuits known
    event ids and the status filter on the update turns a repeat into a no-op.
    """

    def __init__(
        self,
        repo: OrderRepo,
        retry_policy: RetryPolicy,
        ledger,
        secret: str = STRIPE_WEBHOOK_SECRET,
        notifications: NotificationService | None = None,
    ):
        self.repo = repo
        self.retry_policy = retry_policy
        self.ledger = ledger
        self.secret = secret
        self.notification_service = notifications or NotificationService()

    def handle(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        event = stripe_client.parse_event(payload, signature, self.secret)
        event_id = event["id"]
        event_type = event["type"]

        if event_type != PAYMENT_SUCCEEDED:
            logger.info(f"Ignoring webhook event {event_id} of type {event_type}")
            return {"received": True}

        if self.ledger.seen(event_id):
            logger.info(f"Webhook event {event_id} already processed")
            return {"success": True}

        payment_intent_id = event["data"]["object"]["id"]
        transitioned = self.retry_policy.call(self._mark_paid, payment_intent_id)

        self.ledger.remember(event_id)
        return {"success": True, "transitioned": transitioned}

    def _mark_paid(self, payment_intent_id: str) -> bool:
        updated = self.repo.mark_paid(payment_intent_id)
        if updated:
            self.repo.commit()
            order = self.repo.get_by_payment_intent(payment_intent_id)
            logger.info(f"Order {order.id} marked PAID for payment intent {payment_intent_id}")
            self.notification_service.send_order_notification(order.id, OrderStatus.PAID.value)
            return True

        order = self.repo.get_by_payment_intent(payment_intent_id)
        current = order.status.value if order else None
        self.repo.rollback()
        if current is None:
            logger.warning(f"No order yet for payment intent {payment_intent_id}")
            raise OrderNotFoundError(payment_intent_id, by="paymentIntentId")

        logger.info(f"Order for payment intent {payment_intent_id} already {current}, nothing to do")
        return False
