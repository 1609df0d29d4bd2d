# commerce/repos/order_repo.py
from sqlalchemy.orm import Session, selectinload

from commerce.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        # SELECT ... FOR UPDATE, sqlite to ignoruje
        return (
            self.db.query(OrderModel)
            .filter(OrderModel.id == order_id)
            .with_for_update()
            .one_or_none()
        )

    def list_by_session(self, session_id: str) -> list[OrderModel]:
        return (
            self.db.query(OrderModel)
            .options(selectinload(OrderModel.lines))
            .filter(OrderModel.session_id == session_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .all()
        )

    def list_orders(self, status: str | None = None, limit: int = 100, offset: int = 0) -> list[OrderModel]:
        q = self.db.query(OrderModel).options(selectinload(OrderModel.lines))
        if status:
            q = q.filter(OrderModel.status == status)
        return q.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(offset).limit(limit).all()
