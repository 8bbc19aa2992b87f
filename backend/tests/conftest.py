import os

# In-memory database shared by the app and the tests; must be set before the app is imported
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import main
from database import Base, SessionLocal, engine
from models.product import Product
from models.users import User
from schemas.order import OrderCreate
from services.caller import Caller
from utils.tokenJWT import create_access_token


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(main.app)


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def scarf(db):
    # 15.50 with 2.50 delivery
    return _add(db, Product(name="Chunky Wool Scarf", description="Hand knitted", category="Scarves",
                            price=Decimal("15.50"), delivery_charge=Decimal("2.50"), stock_quantity=4))


@pytest.fixture
def blanket(db):
    return _add(db, Product(name="Patchwork Blanket", description="Crochet squares", category="Blankets",
                            price=Decimal("20.00"), delivery_charge=Decimal("3.99"), stock_quantity=2))


@pytest.fixture
def retired_hat(db):
    return _add(db, Product(name="Bobble Hat", description="Out of season", category="Hats",
                            price=Decimal("9.00"), delivery_charge=Decimal("1.00"), is_available=False))


@pytest.fixture
def customer(db):
    return _add(db, User(email="maggie@knitmail.co.uk", role="user", full_name="Maggie Knit"))


@pytest.fixture
def other_customer(db):
    return _add(db, User(email="tom@knitmail.co.uk", role="user"))


@pytest.fixture
def admin(db):
    return _add(db, User(email="owner@woolwitch.co.uk", role="admin"))


def auth_header(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def caller_for(user=None):
    return Caller.from_user(user) if user is not None else Caller.anonymous()


def order_payload(lines, subtotal, delivery_total, total, **overrides):
    """Checkout body as the storefront sends it. lines: [(product, qty), ...]"""
    payload = {
        "email": "guest@knitmail.co.uk",
        "full_name": "Guest Shopper",
        "address": {"street": "1 Loom Lane", "city": "Bath", "postcode": "BA1 1AA"},
        "subtotal": str(subtotal),
        "delivery_total": str(delivery_total),
        "total": str(total),
        "payment_method": "card",
        "line_items": [
            {
                "product_id": product.id,
                "product_name": product.name,
                "product_price": str(product.price),
                "quantity": qty,
                "delivery_charge": str(product.delivery_charge or 0),
            }
            for product, qty in lines
        ],
    }
    payload.update(overrides)
    return payload


def order_create(lines, subtotal, delivery_total, total, **overrides) -> OrderCreate:
    return OrderCreate(**order_payload(lines, subtotal, delivery_total, total, **overrides))
