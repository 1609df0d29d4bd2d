# commerce/domain/states.py
"""
Maszyny stanow dla zamowien, platnosci i zwrotow.

Tabele przejsc sa w jednym miejscu, serwisy wolaja ensure_transition
zamiast porownywac stringi w kodzie.
"""
from enum import Enum

from commerce.domain.errors import InvalidTransition


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RefundStatus(str, Enum):
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class RefundOutcome(str, Enum):
    """Odpowiedz procesora platnosci na zlecenie zwrotu."""

    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    PENDING = "PENDING"


class CouponKind(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


class RequestedBy(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


# zamowienie wyslane nie da sie anulowac statusem, tylko przez zwrot
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: set(),
    PaymentStatus.FAILED: set(),
}

REFUND_TRANSITIONS = {
    RefundStatus.REQUESTED: {RefundStatus.APPROVED, RefundStatus.REJECTED, RefundStatus.COMPLETED},
    RefundStatus.APPROVED: {RefundStatus.REJECTED, RefundStatus.COMPLETED},
    RefundStatus.REJECTED: set(),
    RefundStatus.COMPLETED: set(),
}

# statusy przed wysylka, towar nadal w magazynie
UNSHIPPED_STATUSES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}


def can_transition(table: dict, current, new) -> bool:
    current = type(new)(current)
    return new in table.get(current, set())


def ensure_transition(table: dict, current, new) -> None:
    if not can_transition(table, current, new):
        raise InvalidTransition(
            f"Niedozwolone przejscie {getattr(current, 'value', current)} -> {new.value}",
            current=getattr(current, "value", current),
            requested=new.value,
        )
