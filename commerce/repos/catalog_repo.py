# commerce/repos/catalog_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session

from commerce.data.models.product import ProductModel


class CatalogRepo:
    """
    Dostep do katalogu produktow we wspolnym magazynie danych.
    Stock zmieniamy tylko warunkowym UPDATE, nigdy przez odczyt + zapis.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> dict[int, ProductModel]:
        ids = list(product_ids)
        if not ids:
            return {}
        rows = self.db.query(ProductModel).filter(ProductModel.id.in_(ids)).all()
        return {p.id: p for p in rows}

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        # UPDATE products SET stock = stock - 2 WHERE id = 1 AND stock >= 2
        # 0 wierszy = ktos nas uprzedzil, nie ma juz tyle towaru
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.is_active.is_(True),
                ProductModel.stock >= quantity,
            )
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def restore_stock(self, product_id: int, quantity: int) -> None:
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=ProductModel.stock + quantity)
            .execution_options(synchronize_session=False)
        )
