# commerce/services/payment_client.py
from decimal import Decimal

import requests

from commerce.domain.states import RefundOutcome
from commerce.utils.retry import http_retry
from commerce.utils.settings import PAYMENT_SERVICE_URL, PAYMENT_TIMEOUT_SECONDS
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentClient:
    """Klient zewnetrznego procesora platnosci, tylko zlecanie zwrotow."""

    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or PAYMENT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or PAYMENT_TIMEOUT_SECONDS

    @http_retry()
    def initiate_refund(self, payment_reference: str, amount: Decimal, refund_id: int) -> RefundOutcome:
        url = f"{self.base_url}/refunds"
        logger.info(f"PaymentClient POST {url} ref={payment_reference} amount={amount}")

        resp = requests.post(
            url,
            json={
                "payment_reference": payment_reference,
                "amount": str(amount),
            },
            # ten sam klucz przy retry, procesor nie zwroci pieniedzy dwa razy
            headers={"Idempotency-Key": f"refund-{refund_id}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return RefundOutcome(resp.json()["status"].upper())
