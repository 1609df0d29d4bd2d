# commerce/api/routers/coupons.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce.api.errors import to_http
from commerce.data.database import get_db
from commerce.domain.errors import CommerceError
from commerce.domain.schemas import CouponPreviewOut, CouponValidateIn
from commerce.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("/validate", response_model=CouponPreviewOut)
def validate_coupon(payload: CouponValidateIn, db: Session = Depends(get_db)):
    """
    Podglad rabatu dla kodu kuponu, nie zuzywa kuponu.
    """
    svc = CouponService(db)
    try:
        return svc.preview(payload.code, payload.order_total)
    except CommerceError as e:
        raise to_http(e)
