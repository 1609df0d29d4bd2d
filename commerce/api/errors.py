# commerce/api/errors.py
from fastapi import HTTPException

from commerce.domain import errors

_STATUS_CODES = {
    errors.NotFound: 404,
    errors.OutOfStock: 409,
    errors.EmptyCart: 400,
    errors.CouponExpired: 400,
    errors.CouponLimitExceeded: 400,
    errors.CouponBelowMinimum: 400,
    errors.InvalidTransition: 409,
    errors.NotEligible: 422,
    errors.AlreadyRequested: 409,
    errors.ConcurrencyConflict: 409,
}


def to_http(e: Exception) -> HTTPException:
    if isinstance(e, errors.CommerceError):
        return HTTPException(status_code=_STATUS_CODES.get(type(e), 400), detail=e.to_dict())
    return HTTPException(status_code=400, detail={"error": "VALIDATION_ERROR", "message": str(e)})
