# commerce/data/models/refund.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text

from commerce.data.database import Base


class RefundRequestModel(Base):
    __tablename__ = "refund_requests"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    payment_reference = Column(String(128), nullable=True)

    amount = Column(Numeric(10, 2), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default="REQUESTED")  # REQUESTED, APPROVED, REJECTED, COMPLETED
    requested_by = Column(String(16), nullable=False, default="CUSTOMER")

    requested_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # max jeden aktywny (nie odrzucony) zwrot na zamowienie, pilnuje tego baza
    __table_args__ = (
        Index(
            "uq_refund_requests_active_order",
            "order_id",
            unique=True,
            sqlite_where=text("status != 'REJECTED'"),
            postgresql_where=text("status != 'REJECTED'"),
        ),
    )
