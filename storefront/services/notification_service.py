# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Fire-and-forget notifications queued on Celery.
    A failure to queue is logged and never reaches the caller.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int, order_number: str, status: str):
        try:
            send_push_notification_task.delay(
                user_id,
                f"Order {order_number}",
                f"Your order is now {status}",
                {"order_id": order_id},
            )
        except Exception as e:
            logger.warning(f"Could not queue push notification for order {order_id}: {e}")

    @staticmethod
    def send_otp(phone_number: str, code: str):
        try:
            send_otp_sms_task.delay(phone_number, f"Your OTP code is {code}")
        except Exception as e:
            logger.warning(f"Could not queue OTP sms for {phone_number}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_push_notification_task")
def send_push_notification_task(user_id: int, title: str, body: str, data: dict | None = None):
    """
    Push provider integration lives outside this service, the task only logs.
    """
    logger.info(f"[PUSH] User {user_id}: {title} - {body}")
    return {"user_id": user_id, "title": title, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_otp_sms_task")
def send_otp_sms_task(phone_number: str, body: str):
    # body carries the code, keep it out of the logs
    logger.info(f"[SMS] to {phone_number}")
    return {"phone_number": phone_number, "status": "sent"}
