# commerce/domain/coupon_evaluator.py
"""
Ocena kuponu rabatowego.

evaluate() jest czysta funkcja: nie zapisuje nic do bazy i nie zwieksza
used_count, wiec podglad kuponu mozna wolac dowolna ilosc razy.
Zuzycie kuponu dzieje sie dopiero przy skladaniu zamowienia.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from commerce.domain.errors import CouponBelowMinimum, CouponExpired, CouponLimitExceeded
from commerce.domain.states import CouponKind

MINOR_UNIT = Decimal("0.01")

REASON_EXPIRED = "EXPIRED"
REASON_LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
REASON_BELOW_MINIMUM = "BELOW_MINIMUM"

_REASON_ERRORS = {
    REASON_EXPIRED: (CouponExpired, "Kupon wygasl lub jest nieaktywny"),
    REASON_LIMIT_EXCEEDED: (CouponLimitExceeded, "Limit uzyc kuponu zostal wyczerpany"),
    REASON_BELOW_MINIMUM: (CouponBelowMinimum, "Wartosc zamowienia ponizej minimum kuponu"),
}


@dataclass(frozen=True)
class CouponEvaluation:
    eligible: bool
    discount_amount: Decimal
    reason: str | None = None


def to_decimal(value) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal) -> Decimal:
    """Zaokraglenie half-up do groszy, tylko w momencie naliczenia."""
    return to_decimal(amount).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def _as_utc(moment: datetime) -> datetime:
    #sqlite zwraca naive datetime nawet dla DateTime(timezone=True)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def evaluate(coupon, order_subtotal, now: datetime | None = None) -> CouponEvaluation:
    subtotal = to_decimal(order_subtotal)
    now = _as_utc(now or datetime.now(timezone.utc))

    if not coupon.is_active:
        return CouponEvaluation(False, Decimal("0"), REASON_EXPIRED)
    if coupon.expires_at is not None and now > _as_utc(coupon.expires_at):
        return CouponEvaluation(False, Decimal("0"), REASON_EXPIRED)

    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return CouponEvaluation(False, Decimal("0"), REASON_LIMIT_EXCEEDED)

    if subtotal < to_decimal(coupon.minimum_order or 0):
        return CouponEvaluation(False, Decimal("0"), REASON_BELOW_MINIMUM)

    value = to_decimal(coupon.value)
    if CouponKind(coupon.kind) == CouponKind.PERCENTAGE:
        cap = to_decimal(coupon.max_discount) if coupon.max_discount is not None else subtotal
        discount = min(subtotal * value / Decimal("100"), cap)
    else:
        discount = min(value, subtotal)

    # rabat nigdy nie schodzi ponizej zera ani ponad subtotal
    discount = max(min(discount, subtotal), Decimal("0"))
    return CouponEvaluation(True, discount)


def raise_for_evaluation(evaluation: CouponEvaluation, code: str) -> None:
    if evaluation.eligible:
        return
    error_cls, message = _REASON_ERRORS[evaluation.reason]
    raise error_cls(message, coupon_code=code)
