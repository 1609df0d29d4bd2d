# commerce/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce.api.deps import get_lock_service, get_notification_service, get_payment_client
from commerce.api.errors import to_http
from commerce.data.database import get_db
from commerce.domain.errors import CommerceError
from commerce.domain.schemas import OrderCreate, OrderOut, RefundCreate, RefundOut
from commerce.services.order_service import OrderService
from commerce.services.refund_service import RefundService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    lock_service=Depends(get_lock_service),
    notification_service=Depends(get_notification_service),
):
    return OrderService(db, lock_service=lock_service, notification_service=notification_service)


def get_refund_service(
    db: Session = Depends(get_db),
    payment_client=Depends(get_payment_client),
    notification_service=Depends(get_notification_service),
):
    return RefundService(db, payment_client=payment_client, notification_service=notification_service)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(payload: OrderCreate, svc: OrderService = Depends(get_service)):
    """
    Sklada zamowienie z koszyka sesji.
    Wysyla powiadomienie asynchronicznie.
    """
    try:
        return svc.place_order(
            session_id=payload.session_id,
            shipping_address=payload.shipping_address.model_dump(),
            coupon_code=payload.coupon_code,
            user_id=payload.user_id,
            notes=payload.notes,
        )
    except (CommerceError, ValueError) as e:
        raise to_http(e)


@router.get("/session/{session_id}", response_model=List[OrderOut])
def list_session_orders(session_id: str, svc: OrderService = Depends(get_service)):
    return svc.list_orders_for_session(session_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.get_order(order_id)
    except CommerceError as e:
        raise to_http(e)


@router.post("/{order_id}/refund", response_model=RefundOut, status_code=201)
def request_refund(order_id: int, payload: RefundCreate, svc: RefundService = Depends(get_refund_service)):
    """
    Wniosek klienta o zwrot calej kwoty zamowienia.
    """
    try:
        return svc.request_refund(order_id, payload.reason)
    except (CommerceError, ValueError) as e:
        raise to_http(e)
