# commerce/domain/errors.py
"""
Bledy domenowe rdzenia sprzedazy.

Kazdy blad ma staly `code`, routery mapuja go na status HTTP.
Bledy walidacji wejscia to nadal zwykly ValueError.
"""


class CommerceError(Exception):
    code = "COMMERCE_ERROR"

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.details}


class NotFound(CommerceError):
    code = "NOT_FOUND"


class OutOfStock(CommerceError):
    code = "OUT_OF_STOCK"

    def __init__(self, product_id: int, requested: int | None = None, available: int | None = None):
        super().__init__(
            f"Brak wystarczajacej ilosci produktu {product_id} w magazynie",
            product_id=product_id,
            requested=requested,
            available=available,
        )
        self.product_id = product_id


class EmptyCart(CommerceError):
    code = "EMPTY_CART"


class CouponExpired(CommerceError):
    code = "COUPON_EXPIRED"


class CouponLimitExceeded(CommerceError):
    code = "COUPON_LIMIT_EXCEEDED"


class CouponBelowMinimum(CommerceError):
    code = "COUPON_BELOW_MINIMUM"


class InvalidTransition(CommerceError):
    code = "INVALID_TRANSITION"


class NotEligible(CommerceError):
    code = "NOT_ELIGIBLE"


class AlreadyRequested(CommerceError):
    code = "ALREADY_REQUESTED"


class ConcurrencyConflict(CommerceError):
    code = "CONCURRENCY_CONFLICT"
