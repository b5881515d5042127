# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order status notifications, processed asynchronously by celery.

    Queueing is best-effort: a broker outage is logged and never fails the
    request that triggered it.
    """

    @staticmethod
    def send_order_notification(order_id: str, status: str) -> bool:
        try:
            send_order_notification_task.delay(order_id, str(status))
        except Exception as e:
            logger.warning(f"Could not queue notification for order {order_id}: {e}")
            return False
        return True


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(order_id: str, status: str):
    """
    Celery task; a real deployment would send an email here.
    For now it only logs.
    """
    logger.info(f"[NOTIFICATION] Order {order_id} is now {status}")
    return {"order_id": order_id, "status": status, "sent": True}
