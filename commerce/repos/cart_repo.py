# commerce/repos/cart_repo.py
from sqlalchemy import delete
from sqlalchemy.orm import Session

from commerce.data.models.cart_line import CartLineModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, session_id: str) -> list[CartLineModel]:
        return (
            self.db.query(CartLineModel)
            .filter(CartLineModel.session_id == session_id)
            .order_by(CartLineModel.created_at.desc(), CartLineModel.id.desc())
            .all()
        )

    def get_line(self, session_id: str, product_id: int) -> CartLineModel | None:
        return (
            self.db.query(CartLineModel)
            .filter(
                CartLineModel.session_id == session_id,
                CartLineModel.product_id == product_id,
            )
            .one_or_none()
        )

    def save_line(self, line: CartLineModel) -> CartLineModel:
        self.db.add(line)
        self.db.flush()
        return line

    def delete_line(self, session_id: str, product_id: int) -> int:
        result = self.db.execute(
            delete(CartLineModel)
            .where(
                CartLineModel.session_id == session_id,
                CartLineModel.product_id == product_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def clear(self, session_id: str) -> int:
        result = self.db.execute(
            delete(CartLineModel)
            .where(CartLineModel.session_id == session_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
