# commerce/data/models/order.py
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from commerce.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    session_id = Column(String(128), nullable=False, index=True)
    user_id = Column(String(64), nullable=True)  # gosc bez konta tez moze kupic

    subtotal = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    coupon_code = Column(String(64), nullable=True)

    shipping_address = Column(JSON, nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(String(16), nullable=False, default="PENDING")  # PENDING, CONFIRMED, SHIPPED, DELIVERED, CANCELLED
    payment_status = Column(String(16), nullable=False, default="PENDING")  # PENDING, COMPLETED, FAILED
    payment_reference = Column(String(128), nullable=True)
    tracking_number = Column(String(128), nullable=True)

    # stock zwrocony do katalogu, zeby nie oddac go dwa razy
    stock_released = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    lines = relationship(
        "OrderLineModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineModel.id",
    )


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    name = Column(String, nullable=False)  # snapshot z katalogu
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)  # cena z momentu zakupu

    order = relationship("OrderModel", back_populates="lines")
