# commerce/services/coupon_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commerce.data.models.coupon import CouponModel
from commerce.domain.coupon_evaluator import evaluate, raise_for_evaluation, round_money, to_decimal
from commerce.domain.errors import NotFound
from commerce.domain.states import CouponKind
from commerce.repos.coupon_repo import CouponRepo, normalize_code
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


class CouponService:
    """
    Podglad kuponu dla sklepu i zakladanie kuponow w panelu admina.
    Podglad nigdy nie zuzywa kuponu.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepo(db)

    def preview(self, code: str, order_total) -> Dict[str, Any]:
        coupon = self.repo.get_coupon(code)
        if not coupon:
            raise NotFound("Nieprawidlowy kod kuponu", coupon_code=normalize_code(code))

        subtotal = round_money(order_total)
        evaluation = evaluate(coupon, subtotal)
        raise_for_evaluation(evaluation, coupon.code)

        discount = round_money(evaluation.discount_amount)
        return {
            "code": coupon.code,
            "kind": coupon.kind,
            "value": coupon.value,
            "discount_amount": discount,
            "final_total": subtotal - discount,
        }

    def create_coupon(self, data: Dict[str, Any]) -> CouponModel:
        """
        Use Case: Utworzenie kuponu (admin).

        Walidacja:
        - value > 0, dla PERCENTAGE maks 100
        - max_discount tylko dla PERCENTAGE
        - kod unikalny bez wzgledu na wielkosc liter
        """
        kind = CouponKind(data["kind"])
        value = to_decimal(data["value"])
        max_discount = to_decimal(data.get("max_discount"))

        if value <= 0:
            raise ValueError("Wartosc kuponu musi byc wieksza niz 0")
        if kind == CouponKind.PERCENTAGE and value > 100:
            raise ValueError("Kupon procentowy nie moze przekraczac 100%")
        if max_discount is not None and kind != CouponKind.PERCENTAGE:
            raise ValueError("max_discount dotyczy tylko kuponow procentowych")
        if data.get("usage_limit") is not None and data["usage_limit"] < 1:
            raise ValueError("usage_limit musi byc wiekszy niz 0")

        coupon = CouponModel(
            code=normalize_code(data["code"]),
            kind=kind.value,
            value=value,
            minimum_order=to_decimal(data.get("minimum_order") or Decimal("0")),
            max_discount=max_discount,
            usage_limit=data.get("usage_limit"),
            used_count=0,
            is_active=data.get("is_active", True),
            expires_at=data.get("expires_at"),
        )

        try:
            self.repo.create_coupon(coupon)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ValueError(f"Kupon {coupon.code} juz istnieje")

        self.db.refresh(coupon)
        logger.info(f"Utworzono kupon {coupon.code} ({coupon.kind} {coupon.value})")
        return coupon
