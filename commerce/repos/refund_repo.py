# commerce/repos/refund_repo.py
from sqlalchemy.orm import Session

from commerce.data.models.refund import RefundRequestModel
from commerce.domain.states import RefundStatus


class RefundRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_refund(self, refund: RefundRequestModel) -> RefundRequestModel:
        self.db.add(refund)
        self.db.flush()
        return refund

    def get_refund(self, refund_id: int) -> RefundRequestModel | None:
        return self.db.get(RefundRequestModel, refund_id)

    def get_active_for_order(self, order_id: int) -> RefundRequestModel | None:
        return (
            self.db.query(RefundRequestModel)
            .filter(
                RefundRequestModel.order_id == order_id,
                RefundRequestModel.status != RefundStatus.REJECTED.value,
            )
            .first()
        )

    def list_refunds(self, order_id: int | None = None) -> list[RefundRequestModel]:
        q = self.db.query(RefundRequestModel)
        if order_id is not None:
            q = q.filter(RefundRequestModel.order_id == order_id)
        return q.order_by(RefundRequestModel.requested_at.desc(), RefundRequestModel.id.desc()).all()
