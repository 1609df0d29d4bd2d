# commerce/api/routers/admin.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from commerce.api.errors import to_http
from commerce.api.routers.orders import get_refund_service, get_service
from commerce.data.database import get_db
from commerce.domain.errors import CommerceError
from commerce.domain.schemas import (
    AdminRefundCreate,
    CouponCreate,
    CouponOut,
    OrderOut,
    OrderStatusUpdate,
    RefundOut,
)
from commerce.domain.states import OrderStatus
from commerce.services.coupon_service import CouponService
from commerce.services.order_service import OrderService
from commerce.services.refund_service import RefundService

# autoryzacja admina jest poza tym serwisem (gateway / panel)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    status: OrderStatus | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(status, limit, offset)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.get_order(order_id)
    except CommerceError as e:
        raise to_http(e)


@router.put("/orders/{order_id}", response_model=OrderOut)
def update_order_status(order_id: int, payload: OrderStatusUpdate, svc: OrderService = Depends(get_service)):
    try:
        return svc.admin_update_status(order_id, payload.status, payload.tracking_number)
    except (CommerceError, ValueError) as e:
        raise to_http(e)


@router.post("/orders/{order_id}/refund", response_model=RefundOut, status_code=201)
def admin_refund(order_id: int, payload: AdminRefundCreate, svc: RefundService = Depends(get_refund_service)):
    try:
        return svc.admin_request_refund(order_id, payload.reason, payload.amount)
    except (CommerceError, ValueError) as e:
        raise to_http(e)


@router.get("/refunds", response_model=List[RefundOut])
def list_refunds(order_id: int | None = Query(None), svc: RefundService = Depends(get_refund_service)):
    return svc.list_refunds(order_id)


@router.get("/refunds/{refund_id}", response_model=RefundOut)
def get_refund(refund_id: int, svc: RefundService = Depends(get_refund_service)):
    try:
        return svc.get_refund(refund_id)
    except CommerceError as e:
        raise to_http(e)


@router.post("/coupons", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    svc = CouponService(db)
    try:
        return svc.create_coupon(payload.model_dump())
    except ValueError as e:
        raise to_http(e)
