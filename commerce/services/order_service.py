# commerce/services/order_service.py
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from commerce.data.models.order import OrderLineModel, OrderModel
from commerce.domain.coupon_evaluator import evaluate, raise_for_evaluation, round_money
from commerce.domain.errors import (
    ConcurrencyConflict,
    CouponLimitExceeded,
    EmptyCart,
    NotFound,
    OutOfStock,
)
from commerce.domain.states import (
    ORDER_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    UNSHIPPED_STATUSES,
    OrderStatus,
    PaymentStatus,
    ensure_transition,
)
from commerce.repos.cart_repo import CartRepo
from commerce.repos.catalog_repo import CatalogRepo
from commerce.repos.coupon_repo import CouponRepo, normalize_code
from commerce.repos.order_repo import OrderRepo
from commerce.services.lock_service import LockService
from commerce.services.notification_service import NotificationEvent, NotificationService
from commerce.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel) -> dict:
    return {
        "id": order.id,
        "session_id": order.session_id,
        "user_id": order.user_id,
        "lines": [
            {
                "product_id": line.product_id,
                "name": line.name,
                "quantity": line.quantity,
                "unit_price": line.unit_price,
            }
            for line in order.lines
        ],
        "subtotal": order.subtotal,
        "discount": order.discount,
        "total": order.total,
        "coupon_code": order.coupon_code,
        "shipping_address": order.shipping_address,
        "notes": order.notes,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_reference": order.payment_reference,
        "tracking_number": order.tracking_number,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def release_order_stock(catalog: CatalogRepo, order: OrderModel) -> bool:
    """Oddaje zarezerwowany stock do katalogu, maksymalnie raz na zamowienie."""
    if order.stock_released:
        return False
    for line in order.lines:
        catalog.restore_stock(line.product_id, line.quantity)
    order.stock_released = True
    logger.info(f"Stock zamowienia {order.id} zwrocony do katalogu")
    return True


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Skladanie zamowienia z koszyka sesji + maszyna stanow status / payment_status.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.coupon_repo = CouponRepo(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    #commands
    def place_order(
        self,
        session_id: str,
        shipping_address: dict,
        coupon_code: str | None = None,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> dict:
        """
        Use Case: Zlozenie zamowienia z koszyka sesji.

        1. Lock na checkout sesji (Redis)
        2. Walidacja koszyka i stanow magazynowych na zywo
        3. Subtotal z aktualnych cen katalogu
        4. Kupon (jesli podany) - nieprawidlowy kupon wywraca caly checkout
        5. W jednej transakcji: stock, uzycie kuponu, zamowienie, czyszczenie koszyka
        6. Powiadomienie (fire-and-forget)
        """
        owner = uuid4().hex
        locked = self.lock_service.acquire_checkout_lock(
            session_id=session_id,
            owner=owner,
            ttl=CHECKOUT_LOCK_TTL_SECONDS,
        )
        if not locked:
            raise ConcurrencyConflict("Checkout dla tej sesji jest juz w toku")

        try:
            order = self._place_order_locked(session_id, shipping_address, coupon_code, user_id, notes)
        finally:
            self._release_lock(session_id, owner)

        self.notification_service.notify(
            NotificationEvent.ORDER_PLACED,
            {
                "order_id": order.id,
                "session_id": order.session_id,
                "user_id": order.user_id,
                "total": str(order.total),
            },
        )
        return order_to_dict(order)

    def _release_lock(self, session_id: str, owner: str) -> None:
        try:
            self.lock_service.release_checkout_lock(session_id, owner)
        except RedisError as e:
            #klucz i tak wygasnie po TTL
            logger.warning(f"Nie udalo sie zwolnic locka checkoutu sesji {session_id}: {e}")

    def _place_order_locked(self, session_id, shipping_address, coupon_code, user_id, notes) -> OrderModel:
        lines = self.cart_repo.get_lines(session_id)
        if not lines:
            raise EmptyCart("Nie mozna zlozyc zamowienia z pustego koszyka")

        #stock mogl sie zmienic od dodania do koszyka, sprawdzamy wszystko zanim cokolwiek zapiszemy
        products = self.catalog.get_products(line.product_id for line in lines)
        for line in lines:
            product = products.get(line.product_id)
            if not product or not product.is_active:
                raise NotFound(f"Produkt {line.product_id} nie jest juz dostepny", product_id=line.product_id)
            if product.stock < line.quantity:
                raise OutOfStock(line.product_id, requested=line.quantity, available=product.stock)

        subtotal = round_money(
            sum((products[line.product_id].price * line.quantity for line in lines), Decimal("0.00"))
        )

        discount = Decimal("0.00")
        code = None
        if coupon_code:
            coupon = self.coupon_repo.get_coupon(coupon_code)
            if not coupon:
                raise NotFound("Nieprawidlowy kod kuponu", coupon_code=normalize_code(coupon_code))
            evaluation = evaluate(coupon, subtotal)
            raise_for_evaluation(evaluation, coupon.code)
            discount = round_money(evaluation.discount_amount)
            code = coupon.code

        order = OrderModel(
            session_id=session_id,
            user_id=user_id,
            subtotal=subtotal,
            discount=discount,
            total=subtotal - discount,
            coupon_code=code,
            shipping_address=shipping_address,
            notes=notes,
            status=OrderStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            lines=[
                OrderLineModel(
                    product_id=line.product_id,
                    name=products[line.product_id].name,
                    quantity=line.quantity,
                    unit_price=products[line.product_id].price,
                )
                for line in lines
            ],
        )

        #wszystko albo nic - przy bledzie rollback cofa juz zdjety stock i licznik kuponu
        #wiersze produktow blokowane zawsze w kolejnosci id, inaczej dwa checkouty moga sie zakleszczyc
        try:
            for line in sorted(lines, key=lambda l: l.product_id):
                if not self.catalog.decrement_stock(line.product_id, line.quantity):
                    logger.info(f"Przegrany wyscig o stock produktu {line.product_id} (sesja {session_id})")
                    raise OutOfStock(line.product_id, requested=line.quantity)

            if code and not self.coupon_repo.increment_usage(code):
                raise CouponLimitExceeded("Limit uzyc kuponu zostal wyczerpany", coupon_code=code)

            self.repo.add_order(order)

            cleared = self.cart_repo.clear(session_id)
            if cleared != len(lines):
                raise ConcurrencyConflict(
                    "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany podczas checkoutu"
                )

            self.db.commit()
        except OperationalError as e:
            #deadlock / lock timeout w bazie
            self.db.rollback()
            logger.warning(f"Checkout sesji {session_id} przerwany przez baze: {e}")
            raise ConcurrencyConflict("Konflikt wspolbieznosci - sprobuj ponownie") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} created from session {session_id}: "
            f"subtotal={order.subtotal} discount={order.discount} total={order.total}"
        )
        return order

    def record_payment_result(self, order_id: int, outcome: PaymentStatus, payment_reference: str | None = None) -> dict:
        """
        Use Case: Callback od procesora platnosci.
        FAILED oddaje stock i anuluje zamowienie, COMPLETED tylko zapisuje status.
        """
        outcome = PaymentStatus(outcome)
        order = self._get_order_for_update(order_id)

        #ten sam callback drugi raz (retry webhooka) - nic nie robimy
        if order.payment_status == outcome.value and outcome != PaymentStatus.PENDING:
            logger.info(f"Order {order_id}: duplikat callbacku platnosci {outcome.value}")
            self.db.rollback()
            return order_to_dict(order)

        try:
            ensure_transition(PAYMENT_TRANSITIONS, order.payment_status, outcome)

            order.payment_status = outcome.value
            if payment_reference:
                order.payment_reference = payment_reference
            order.updated_at = datetime.now(timezone.utc)

            if outcome == PaymentStatus.FAILED:
                if OrderStatus(order.status) in UNSHIPPED_STATUSES:
                    release_order_stock(self.catalog, order)
                    order.status = OrderStatus.CANCELLED.value
                elif order.status != OrderStatus.CANCELLED.value:
                    logger.warning(f"Order {order_id}: platnosc FAILED dla zamowienia w statusie {order.status}")
            elif order.status == OrderStatus.CANCELLED.value:
                #pieniadze wplynely na anulowane zamowienie, do recznego zwrotu
                logger.warning(f"Order {order_id}: platnosc COMPLETED dla anulowanego zamowienia")

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(order)
        logger.info(f"Order {order_id}: payment {outcome.value}, status {order.status}")

        if outcome == PaymentStatus.FAILED:
            self.notification_service.notify(
                NotificationEvent.PAYMENT_FAILED,
                {"order_id": order.id, "session_id": order.session_id, "payment_reference": order.payment_reference},
            )
        return order_to_dict(order)

    def admin_update_status(
        self,
        order_id: int,
        new_status: OrderStatus | None = None,
        tracking_number: str | None = None,
    ) -> dict:
        """
        Use Case: Zmiana statusu przez admina.
        Numer przesylki mozna ustawic niezaleznie od statusu.
        """
        if new_status is None and tracking_number is None:
            raise ValueError("Podaj status albo numer przesylki")

        order = self._get_order_for_update(order_id)

        try:
            if new_status is not None:
                new_status = OrderStatus(new_status)
                if new_status.value != order.status:
                    ensure_transition(ORDER_TRANSITIONS, order.status, new_status)
                    if new_status == OrderStatus.CANCELLED:
                        release_order_stock(self.catalog, order)
                    logger.info(f"Order {order_id}: {order.status} -> {new_status.value}")
                    order.status = new_status.value

            if tracking_number is not None:
                order.tracking_number = tracking_number

            order.updated_at = datetime.now(timezone.utc)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order_to_dict(order)

    #query
    def get_order(self, order_id: int) -> dict:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Zamowienie {order_id} nie istnieje", order_id=order_id)
        return order_to_dict(order)

    def list_orders_for_session(self, session_id: str) -> list[dict]:
        return [order_to_dict(o) for o in self.repo.list_by_session(session_id)]

    def list_orders(self, status: OrderStatus | None = None, limit: int = 100, offset: int = 0) -> list[dict]:
        status_value = OrderStatus(status).value if status else None
        return [order_to_dict(o) for o in self.repo.list_orders(status_value, limit, offset)]

    def _get_order_for_update(self, order_id: int) -> OrderModel:
        order = self.repo.get_order_for_update(order_id)
        if not order:
            raise NotFound(f"Zamowienie {order_id} nie istnieje", order_id=order_id)
        return order
