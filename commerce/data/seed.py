# commerce/data/seed.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from commerce.data.database import SessionLocal
from commerce.data.models import CouponModel, ProductModel
from commerce.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Cotton Kurta", "price": Decimal("1299.00"), "stock": 25},
    {"name": "Silk Saree", "price": Decimal("4999.00"), "stock": 5},
    {"name": "Linen Dupatta", "price": Decimal("699.50"), "stock": 40},
]

COUPONS = [
    {"code": "WELCOME10", "kind": "PERCENTAGE", "value": Decimal("10"), "max_discount": Decimal("500")},
    {"code": "FLAT200", "kind": "FIXED", "value": Decimal("200"), "minimum_order": Decimal("1000")},
    {"code": "FESTIVE25", "kind": "PERCENTAGE", "value": Decimal("25"), "usage_limit": 100},
]


def seed():
    """Dane developerskie, tylko jesli katalog jest pusty."""
    db = SessionLocal()
    try:
        if db.query(ProductModel).first():
            return
        for p in PRODUCTS:
            db.add(ProductModel(is_active=True, **p))
        expires = datetime.now(timezone.utc) + timedelta(days=30)
        for c in COUPONS:
            db.add(CouponModel(is_active=True, used_count=0, expires_at=expires, **c))
        db.commit()
        logger.info(f"Seed: {len(PRODUCTS)} produktow, {len(COUPONS)} kuponow")
    finally:
        db.close()


if __name__ == "__main__":
    from commerce.main import init_db

    init_db()
    seed()
