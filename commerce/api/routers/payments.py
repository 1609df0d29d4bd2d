# commerce/api/routers/payments.py
from fastapi import APIRouter, Depends

from commerce.api.errors import to_http
from commerce.api.routers.orders import get_refund_service, get_service
from commerce.domain.errors import CommerceError
from commerce.domain.schemas import OrderOut, PaymentCallbackIn, RefundCallbackIn, RefundOut
from commerce.services.order_service import OrderService
from commerce.services.refund_service import RefundService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/callback", response_model=OrderOut)
def payment_callback(payload: PaymentCallbackIn, svc: OrderService = Depends(get_service)):
    """
    Wynik platnosci od procesora (COMPLETED / FAILED).
    """
    try:
        return svc.record_payment_result(payload.order_id, payload.outcome, payload.payment_reference)
    except CommerceError as e:
        raise to_http(e)


@router.post("/refunds/callback", response_model=RefundOut)
def refund_callback(payload: RefundCallbackIn, svc: RefundService = Depends(get_refund_service)):
    """
    Pozny wynik zwrotu, dla wnioskow ktore procesor przyjal jako PENDING.
    """
    try:
        return svc.record_refund_result(payload.refund_id, payload.outcome)
    except CommerceError as e:
        raise to_http(e)
