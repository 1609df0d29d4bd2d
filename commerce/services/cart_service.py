from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from commerce.data.models.cart_line import CartLineModel
from commerce.domain.errors import ConcurrencyConflict, NotFound, OutOfStock
from commerce.repos.cart_repo import CartRepo
from commerce.repos.catalog_repo import CatalogRepo
from commerce.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk trzymany per sesja (session_id), bez konta uzytkownika.
    commands (add, update, remove, clear) modyfikuja stan
    query (get_cart) tylko odczyt, ceny zawsze na zywo z katalogu
    Stock w katalogu nie jest tu ruszany, rezerwacja dopiero przy zamowieniu.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)

    #query - odczyt
    def get_cart(self, session_id: str) -> Dict[str, Any]:
        lines = self.repo.get_lines(session_id)
        products = self.catalog.get_products(line.product_id for line in lines)

        items = []
        subtotal = Decimal("0.00")
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                continue
            line_total = product.price * line.quantity
            if product.is_active:
                subtotal += line_total
            items.append(
                {
                    "product_id": line.product_id,
                    "name": product.name,
                    "image_url": product.image_url,
                    "quantity": line.quantity,
                    "unit_price": product.price,
                    "line_total": line_total,
                    "available": product.is_active and product.stock >= line.quantity,
                }
            )

        return {
            "session_id": session_id,
            "items": items,
            "item_count": sum(i["quantity"] for i in items),
            "subtotal": subtotal,
        }

    #commands
    def add_item(self, session_id: str, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Ilosc musi byc wieksza niz 0")

        product = self._get_active_product(product_id)
        existing = self.repo.get_line(session_id, product_id)

        #sumujemy z tym co juz jest w koszyku i walidujemy calosc
        new_quantity = quantity + (existing.quantity if existing else 0)
        if new_quantity > product.stock:
            raise OutOfStock(product_id, requested=new_quantity, available=product.stock)

        if existing:
            logger.info(
                f"Produkt {product_id} juz jest w koszyku {session_id}, zwiekszam ilosc "
                f"z {existing.quantity} do {new_quantity}"
            )
            existing.quantity = new_quantity
            existing.updated_at = datetime.now(timezone.utc)
            line = existing
        else:
            logger.info(f"Dodaje nowy produkt {product_id} do koszyka {session_id}")
            line = CartLineModel(session_id=session_id, product_id=product_id, quantity=new_quantity)

        self._save(line)
        return self.get_cart(session_id)

    def update_quantity(self, session_id: str, product_id: int, quantity: int) -> Dict[str, Any]:
        #zero to remove_item, nie update
        if quantity < 1:
            raise ValueError("Ilosc musi byc wieksza niz 0, do usuniecia uzyj remove")

        line = self.repo.get_line(session_id, product_id)
        if not line:
            raise NotFound(f"Produktu {product_id} nie ma w koszyku", product_id=product_id)

        product = self._get_active_product(product_id)
        if quantity > product.stock:
            raise OutOfStock(product_id, requested=quantity, available=product.stock)

        logger.info(f"Koszyk {session_id}: produkt {product_id} ilosc {line.quantity} -> {quantity}")
        line.quantity = quantity
        line.updated_at = datetime.now(timezone.utc)
        self._save(line)
        return self.get_cart(session_id)

    def remove_item(self, session_id: str, product_id: int) -> Dict[str, Any]:
        #idempotentne, brak linii to nie blad
        removed = self.repo.delete_line(session_id, product_id)
        self.repo.commit()
        if removed:
            logger.info(f"Produkt {product_id} usuniety z koszyka {session_id}")
        return self.get_cart(session_id)

    def clear(self, session_id: str) -> None:
        removed = self.repo.clear(session_id)
        self.repo.commit()
        logger.info(f"Koszyk {session_id} wyczyszczony ({removed} pozycji)")

    def _get_active_product(self, product_id: int):
        product = self.catalog.get_product(product_id)
        if not product or not product.is_active:
            raise NotFound(f"Produkt {product_id} nie istnieje lub jest nieaktywny", product_id=product_id)
        return product

    def _save(self, line: CartLineModel) -> None:
        try:
            self.repo.save_line(line)
            self.repo.commit()
        except IntegrityError:
            #rownolegle dodanie tego samego produktu w tej samej sesji
            self.repo.rollback()
            raise ConcurrencyConflict(
                "Konflikt wspolbieznosci - koszyk zostal zmodyfikowany przez inna operacje"
            )
