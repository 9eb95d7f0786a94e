# app/services/notification_service.py
from celery.exceptions import CeleryError
from kombu.exceptions import OperationalError

from app.celery_worker import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Customer notifications, delivered asynchronously through Celery.
    """

    @staticmethod
    def send_order_notification(user_id: str, order_id: str, status: str):
        """
        Queue a notification about an order. Called after commit; enqueue
        failures are logged only.
        """
        try:
            send_order_notification_task.delay(user_id, order_id, status)
        except (CeleryError, OperationalError) as e:
            logger.error(f"Could not queue notification for order {order_id}: {e}")


@celery_app.task(name="app.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: str, status: str):
    """
    Celery task. The delivery channel (email/SMS/push) plugs in here; for
    now the notification is recorded in the log.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} is {status}")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
