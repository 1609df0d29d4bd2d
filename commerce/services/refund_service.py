# commerce/services/refund_service.py
from datetime import datetime, timezone
from decimal import Decimal

from requests import RequestException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commerce.data.models.refund import RefundRequestModel
from commerce.domain.coupon_evaluator import round_money
from commerce.domain.errors import AlreadyRequested, NotEligible, NotFound
from commerce.domain.states import (
    REFUND_TRANSITIONS,
    UNSHIPPED_STATUSES,
    OrderStatus,
    PaymentStatus,
    RefundOutcome,
    RefundStatus,
    RequestedBy,
    ensure_transition,
)
from commerce.repos.catalog_repo import CatalogRepo
from commerce.repos.order_repo import OrderRepo
from commerce.repos.refund_repo import RefundRepo
from commerce.services.notification_service import NotificationEvent, NotificationService
from commerce.services.order_service import release_order_stock
from commerce.services.payment_client import PaymentClient
from commerce.utils.logging import get_logger

logger = get_logger(__name__)

_OUTCOME_TO_STATUS = {
    RefundOutcome.COMPLETED: RefundStatus.COMPLETED,
    RefundOutcome.REJECTED: RefundStatus.REJECTED,
    RefundOutcome.PENDING: RefundStatus.APPROVED,
}


def refund_to_dict(refund: RefundRequestModel) -> dict:
    return {
        "id": refund.id,
        "order_id": refund.order_id,
        "payment_reference": refund.payment_reference,
        "amount": refund.amount,
        "reason": refund.reason,
        "status": refund.status,
        "requested_by": refund.requested_by,
        "requested_at": refund.requested_at,
        "updated_at": refund.updated_at,
    }


class RefundService:
    """
    Koordynator zwrotow.

    Waliduje czy zamowienie kwalifikuje sie do zwrotu, zapisuje wniosek
    i zleca przelew procesorowi platnosci. Sam nie przesuwa pieniedzy.
    Na jedno zamowienie max jeden aktywny (nie odrzucony) wniosek.
    """

    def __init__(
        self,
        db: Session,
        payment_client: PaymentClient,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.repo = RefundRepo(db)
        self.order_repo = OrderRepo(db)
        self.catalog = CatalogRepo(db)
        self.payment_client = payment_client
        self.notification_service = notification_service or NotificationService()

    def request_refund(self, order_id: int, reason: str) -> dict:
        """Use Case: Klient prosi o zwrot calej kwoty zamowienia."""
        return self._request(order_id, reason, amount=None, requested_by=RequestedBy.CUSTOMER)

    def admin_request_refund(self, order_id: int, reason: str, amount) -> dict:
        """Use Case: Admin zleca zwrot, rowniez czesciowy."""
        return self._request(order_id, reason, amount=amount, requested_by=RequestedBy.ADMIN)

    def record_refund_result(self, refund_id: int, outcome: RefundOutcome) -> dict:
        """
        Use Case: Pozny callback od procesora dla zwrotu w statusie APPROVED.
        """
        refund = self.repo.get_refund(refund_id)
        if not refund:
            raise NotFound(f"Wniosek o zwrot {refund_id} nie istnieje", refund_id=refund_id)

        outcome = RefundOutcome(outcome)
        if refund.status == _OUTCOME_TO_STATUS[outcome].value:
            logger.info(f"Refund {refund_id}: duplikat callbacku {outcome.value}")
            return refund_to_dict(refund)

        self._apply_outcome(refund, outcome)
        return refund_to_dict(refund)

    #query
    def get_refund(self, refund_id: int) -> dict:
        refund = self.repo.get_refund(refund_id)
        if not refund:
            raise NotFound(f"Wniosek o zwrot {refund_id} nie istnieje", refund_id=refund_id)
        return refund_to_dict(refund)

    def list_refunds(self, order_id: int | None = None) -> list[dict]:
        return [refund_to_dict(r) for r in self.repo.list_refunds(order_id)]

    def _request(self, order_id: int, reason: str, amount, requested_by: RequestedBy) -> dict:
        if not reason or not reason.strip():
            raise ValueError("Powod zwrotu jest wymagany")

        order = self.order_repo.get_order(order_id)
        if not order:
            raise NotFound(f"Zamowienie {order_id} nie istnieje", order_id=order_id)

        if order.payment_status != PaymentStatus.COMPLETED.value:
            raise NotEligible(
                "Zwrot mozliwy tylko dla oplaconych zamowien",
                order_id=order_id,
                payment_status=order.payment_status,
            )

        #aktywny wniosek sprawdzamy przed statusem, po udanym zwrocie zamowienie jest CANCELLED
        if self.repo.get_active_for_order(order_id):
            raise AlreadyRequested(f"Dla zamowienia {order_id} istnieje juz wniosek o zwrot", order_id=order_id)

        if order.status == OrderStatus.CANCELLED.value:
            raise NotEligible("Zamowienie jest anulowane", order_id=order_id, status=order.status)

        if order.total <= Decimal("0"):
            raise NotEligible("Zamowienie o zerowej wartosci nie podlega zwrotowi", order_id=order_id)

        if amount is None:
            amount = order.total
        amount = round_money(amount)
        if amount <= Decimal("0") or amount > order.total:
            raise ValueError(f"Kwota zwrotu musi byc z zakresu (0, {order.total}]")

        refund = RefundRequestModel(
            order_id=order.id,
            payment_reference=order.payment_reference,
            amount=amount,
            reason=reason.strip(),
            status=RefundStatus.REQUESTED.value,
            requested_by=requested_by.value,
        )

        try:
            self.repo.add_refund(refund)
            self.db.commit()
        except IntegrityError:
            #rownolegly wniosek wygral, unikalny indeks na aktywny zwrot
            self.db.rollback()
            raise AlreadyRequested(f"Dla zamowienia {order_id} istnieje juz wniosek o zwrot", order_id=order_id)

        logger.info(f"Refund {refund.id} requested for order {order_id}: {amount} ({requested_by.value})")
        self.notification_service.notify(
            NotificationEvent.REFUND_REQUESTED,
            {"order_id": order_id, "refund_id": refund.id, "amount": str(amount)},
        )

        outcome = self._dispatch(refund)
        self._apply_outcome(refund, outcome)
        return refund_to_dict(refund)

    def _dispatch(self, refund: RefundRequestModel) -> RefundOutcome:
        try:
            return self.payment_client.initiate_refund(
                payment_reference=refund.payment_reference,
                amount=refund.amount,
                refund_id=refund.id,
            )
        except (RequestException, KeyError, ValueError) as e:
            #timeout / brak odpowiedzi procesora po retry traktujemy jak odrzucenie
            logger.error(f"Refund {refund.id}: procesor platnosci niedostepny: {e}")
            return RefundOutcome.REJECTED

    def _apply_outcome(self, refund: RefundRequestModel, outcome: RefundOutcome) -> None:
        new_status = _OUTCOME_TO_STATUS[outcome]
        try:
            ensure_transition(REFUND_TRANSITIONS, refund.status, new_status)
            refund.status = new_status.value
            refund.updated_at = datetime.now(timezone.utc)

            if new_status == RefundStatus.COMPLETED:
                order = self.order_repo.get_order_for_update(refund.order_id)
                #towar jeszcze nie wyslany wraca na magazyn
                if OrderStatus(order.status) in UNSHIPPED_STATUSES:
                    release_order_stock(self.catalog, order)
                order.status = OrderStatus.CANCELLED.value
                order.updated_at = datetime.now(timezone.utc)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(refund)
        logger.info(f"Refund {refund.id}: {outcome.value} -> {refund.status}")
