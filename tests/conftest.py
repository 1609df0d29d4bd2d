"""
Pytest fixtures for commerce core tests.

Provides an in-memory SQLite database, in-process fakes for the Redis lock,
Celery notifications and the payment processor, and a FastAPI test client.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "1")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from commerce.api.deps import get_lock_service, get_notification_service, get_payment_client
from commerce.data.database import Base, get_db
from commerce.data.models import CouponModel, ProductModel
from commerce.domain.states import RefundOutcome
from commerce.main import create_app
from commerce.services.cart_service import CartService
from commerce.services.notification_service import NotificationEvent
from commerce.services.order_service import OrderService
from commerce.services.refund_service import RefundService

SHIPPING = {
    "first_name": "Asha",
    "last_name": "Rao",
    "email": "asha@example.com",
    "phone": "9800000000",
    "street": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "zip_code": "560001",
    "country": "India",
}


class FakeLockService:
    """Lock w pamieci, ta sama semantyka co SET NX + compare-and-delete."""

    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, session_id, owner, ttl):
        if session_id in self.locks:
            return False
        self.locks[session_id] = owner
        return True

    def release_checkout_lock(self, session_id, owner):
        if self.locks.get(session_id) == owner:
            del self.locks[session_id]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify(self, event, payload):
        self.events.append((NotificationEvent(event), payload))

    def names(self):
        return [e for e, _ in self.events]


class FakePaymentClient:
    def __init__(self, outcome=RefundOutcome.COMPLETED):
        self.outcome = outcome
        self.calls = []

    def initiate_refund(self, payment_reference, amount, refund_id):
        self.calls.append({"payment_reference": payment_reference, "amount": amount, "refund_id": refund_id})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def payment_client():
    return FakePaymentClient()


@pytest.fixture
def cart_service(db_session):
    return CartService(db_session)


@pytest.fixture
def order_service(db_session, lock_service, notifier):
    return OrderService(db_session, lock_service=lock_service, notification_service=notifier)


@pytest.fixture
def refund_service(db_session, payment_client, notifier):
    return RefundService(db_session, payment_client=payment_client, notification_service=notifier)


@pytest.fixture
def make_product(db_session):
    def _make(name="Cotton Kurta", price="100.00", stock=10, is_active=True, image_url=None):
        product = ProductModel(
            name=name,
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
            image_url=image_url,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def make_coupon(db_session):
    def _make(code="SAVE10", kind="PERCENTAGE", value="10", **kwargs):
        coupon = CouponModel(
            code=code.upper(),
            kind=kind,
            value=Decimal(value),
            minimum_order=Decimal(kwargs.pop("minimum_order", "0")),
            used_count=kwargs.pop("used_count", 0),
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        db_session.add(coupon)
        db_session.commit()
        return coupon
    return _make


@pytest.fixture
def placed_order(cart_service, order_service, make_product):
    """Zamowienie PENDING/PENDING: 2 x 100.00 z produktu o stocku 10."""
    product = make_product(price="100.00", stock=10)
    cart_service.add_item("sess-placed", product.id, 2)
    order = order_service.place_order("sess-placed", SHIPPING)
    return order, product


@pytest.fixture
def paid_order(placed_order, order_service):
    order, product = placed_order
    order = order_service.record_payment_result(order["id"], "COMPLETED", "pay_123")
    return order, product


@pytest.fixture
def client(session_factory, lock_service, notifier, payment_client):
    app = create_app(with_lifespan=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    return TestClient(app)
