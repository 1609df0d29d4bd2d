# commerce/api/deps.py
from commerce.services.lock_service import LockService
from commerce.services.notification_service import NotificationService
from commerce.services.payment_client import PaymentClient


#osobne funkcje zeby w testach mozna bylo podmienic przez dependency_overrides
def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_payment_client() -> PaymentClient:
    return PaymentClient()
