import os

# must be set before storefront.data.database builds its engine
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import storefront.data.models  # noqa: F401
from storefront.api import create_app
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import CategoryModel, ProductModel, UserModel
from storefront.domain.schemas import OrderCreate
from storefront.services.notification_service import EventSink, NotificationService
from storefront.utils.settings import StoreSettings


class InMemoryLockService:
    """Same surface as LockService, backed by a dict."""

    def __init__(self):
        self.held = {}
        self.acquired = []

    def acquire_order_lock(self, order_id, token, ttl):
        if order_id in self.held:
            return False
        self.held[order_id] = token
        self.acquired.append(order_id)
        return True

    def release_order_lock(self, order_id, token):
        if self.held.get(order_id) == token:
            del self.held[order_id]
            return True
        return False


class RecordingSink(EventSink):
    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def of_type(self, type_):
        return [e for e in self.events if e["type"] == type_]


class FailingSink(EventSink):
    def __init__(self):
        self.calls = 0

    def emit(self, event):
        self.calls += 1
        raise RuntimeError("sink is down")


@pytest.fixture
def settings():
    return StoreSettings()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier(sink, settings):
    return NotificationService(sink, settings)


@pytest.fixture
def lock_service():
    return InMemoryLockService()


@pytest.fixture
def client(db, settings, lock_service):
    app = create_app(settings, lock_service=lock_service)
    with TestClient(app) as c:
        yield c


# -----------------------------------------------------
# factories
# -----------------------------------------------------
@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", customer_type="B2C", **kwargs):
        counter["n"] += 1
        n = counter["n"]
        user = UserModel(
            username=kwargs.pop("username", f"user{n}"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            name=kwargs.pop("name", f"User {n}"),
            phone=kwargs.pop("phone", "9999999999"),
            role=role,
            customer_type=customer_type,
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", username="admin", email="admin@example.com", name="Admin")


@pytest.fixture
def category(db):
    category = CategoryModel(name="Valves")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def make_product(db, category):
    def _make(price="100.00", stock=20, discount_price=None, **kwargs):
        product = ProductModel(
            title=kwargs.pop("title", f"Product {price}"),
            category_id=kwargs.pop("category_id", category.id),
            price=Decimal(price),
            discount_price=Decimal(discount_price) if discount_price is not None else None,
            stock=stock,
            **kwargs,
        )
        db.add(product)
        db.commit()
        return product

    return _make


def order_payload(*lines, method="cod", shipping="standard", **extra) -> OrderCreate:
    """lines: (product, quantity) pairs."""
    return OrderCreate(
        items=[{"product_id": p.id, "quantity": q} for p, q in lines],
        payment={"method": method},
        shipping={"method": shipping},
        **extra,
    )


def stock_of(db, product_id) -> int:
    return db.get(ProductModel, product_id, populate_existing=True).stock
