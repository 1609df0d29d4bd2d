# commerce/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from commerce.domain.states import (
    CouponKind,
    OrderStatus,
    PaymentStatus,
    RefundOutcome,
)
from commerce.utils.settings import DEFAULT_COUNTRY


# ---------- koszyk ----------

class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(1, ge=1, description="Ilosc produktu (musi byc >= 1)")


class QuantityIn(BaseModel):
    """Schema dla zmiany ilosci w koszyku."""

    quantity: int = Field(..., ge=1, description="Nowa ilosc (>= 1, do usuniecia uzyj DELETE)")


class CartLineOut(BaseModel):
    product_id: int
    name: str
    image_url: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    available: bool


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    session_id: str
    items: List[CartLineOut]
    item_count: int
    subtotal: Decimal


# ---------- kupony ----------

class CouponValidateIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    order_total: Decimal = Field(..., ge=0)


class CouponPreviewOut(BaseModel):
    code: str
    kind: CouponKind
    value: Decimal
    discount_amount: Decimal
    final_total: Decimal


class CouponCreate(BaseModel):
    """Schema dla tworzenia kuponu (admin)."""

    code: str = Field(..., min_length=1, max_length=64)
    kind: CouponKind
    value: Decimal = Field(..., gt=0)
    minimum_order: Decimal = Field(Decimal("0"), ge=0)
    max_discount: Decimal | None = Field(None, gt=0)
    usage_limit: int | None = Field(None, ge=1)
    is_active: bool = True
    expires_at: datetime | None = None


class CouponOut(BaseModel):
    code: str
    kind: CouponKind
    value: Decimal
    minimum_order: Decimal
    max_discount: Decimal | None = None
    usage_limit: int | None = None
    used_count: int
    is_active: bool
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------- zamowienia ----------

class ShippingAddress(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=3)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = DEFAULT_COUNTRY


class OrderCreate(BaseModel):
    """Schema dla skladania zamowienia z koszyka sesji."""

    session_id: str = Field(..., min_length=1, max_length=128)
    user_id: str | None = None
    shipping_address: ShippingAddress
    coupon_code: str | None = Field(None, max_length=64)
    notes: str | None = None


class OrderLineOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    session_id: str
    user_id: str | None = None
    lines: List[OrderLineOut]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    coupon_code: str | None = None
    shipping_address: dict
    notes: str | None = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_reference: str | None = None
    tracking_number: str | None = None
    created_at: datetime
    updated_at: datetime


class OrderStatusUpdate(BaseModel):
    """Schema dla zmiany statusu przez admina."""

    status: OrderStatus | None = None
    tracking_number: str | None = Field(None, min_length=1, max_length=128)


class PaymentCallbackIn(BaseModel):
    order_id: int = Field(..., gt=0)
    outcome: PaymentStatus
    payment_reference: str | None = Field(None, max_length=128)


# ---------- zwroty ----------

class RefundCreate(BaseModel):
    reason: str = Field(..., min_length=1)


class AdminRefundCreate(BaseModel):
    reason: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class RefundCallbackIn(BaseModel):
    refund_id: int = Field(..., gt=0)
    outcome: RefundOutcome


class RefundOut(BaseModel):
    id: int
    order_id: int
    payment_reference: str | None = None
    amount: Decimal
    reason: str
    status: str
    requested_by: str
    requested_at: datetime
    updated_at: datetime
