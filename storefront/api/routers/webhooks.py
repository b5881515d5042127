# storefront/api/routers/webhooks.py
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.errors import InvalidSignatureError, OrderNotFoundError
from storefront.repos.order_repo import OrderRepo
from storefront.services.event_ledger import EventLedger
from storefront.services.webhook_service import PaymentWebhookHandler
from storefront.utils.logging import get_logger
from storefront.utils.retry import RetryPolicy
from storefront.utils.settings import STRIPE_WEBHOOK_SECRET, WEBHOOK_MAX_ATTEMPTS, WEBHOOK_RETRY_DELAY_SECONDS

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


def get_event_ledger() -> EventLedger:
    return EventLedger()


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=WEBHOOK_MAX_ATTEMPTS,
        delay_seconds=WEBHOOK_RETRY_DELAY_SECONDS,
        retry_on=(OrderNotFoundError,),
    )


def get_handler(
    db: Session = Depends(get_db),
    ledger=Depends(get_event_ledger),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
) -> PaymentWebhookHandler:
    return PaymentWebhookHandler(OrderRepo(db), retry_policy, ledger, secret=STRIPE_WEBHOOK_SECRET)


@router.post("/stripe")
async def stripe_webhook(request: Request, handler: PaymentWebhookHandler = Depends(get_handler)):
    # signature is computed over the raw body
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        return await run_in_threadpool(handler.handle, payload, signature)
    except InvalidSignatureError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except OrderNotFoundError as e:
        logger.error(f"No order found after retries: {e}")
        raise HTTPException(status_code=404, detail="Order not found")
