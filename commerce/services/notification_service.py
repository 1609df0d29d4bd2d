# commerce/services/notification_service.py
from enum import Enum

from commerce.celery_worker import celery_app
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationEvent(str, Enum):
    ORDER_PLACED = "order-placed"
    PAYMENT_FAILED = "payment-failed"
    REFUND_REQUESTED = "refund-requested"


class NotificationService:
    """
    Fire-and-forget powiadomienia przez Celery.
    Blad wysylki jest logowany i polykany, nie moze wywrocic zamowienia.
    """

    def notify(self, event: NotificationEvent, payload: dict) -> None:
        event = NotificationEvent(event)
        try:
            send_notification_task.delay(event.value, payload)
        except Exception as e:
            logger.warning(f"[NOTIFICATION] Nie udalo sie wyslac {event.value}: {e}")


@celery_app.task(name="commerce.services.notification_service.send_notification_task")
def send_notification_task(event: str, payload: dict):
    """
    Celery task - dostarczenie (email/SMS) jest poza rdzeniem,
    tutaj tylko logujemy zdarzenie dla kolektora powiadomien.
    """
    logger.info(f"[NOTIFICATION] {event}: {payload}")
    return {"event": event, "status": "sent"}
