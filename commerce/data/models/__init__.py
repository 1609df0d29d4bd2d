#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from commerce.data.models.product import ProductModel
from commerce.data.models.cart_line import CartLineModel
from commerce.data.models.coupon import CouponModel
from commerce.data.models.order import OrderModel, OrderLineModel
from commerce.data.models.refund import RefundRequestModel

__all__ = [
    "ProductModel",
    "CartLineModel",
    "CouponModel",
    "OrderModel",
    "OrderLineModel",
    "RefundRequestModel",
]
