from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from main import app
from core.db import Base, build_engine, get_db
from core import config as core_config
from models.customer import Customer
from models.order import Order, OrderStatus
from models.order_item import OrderItem
from models.product import Product, ProductVariant
from models.seller import Seller
from security.password import hash_password
from security import jwt as jwt_utils
from services import email as email_service
from services import notifications
from services import otp as otp_service

ADDRESS = {
    "full_name": "Asha Rao",
    "line1": "12 MG Road",
    "line2": None,
    "city": "Bengaluru",
    "state": "Karnataka",
    "postal_code": "560001",
    "country": "India",
    "phone": "9876543210",
}


@pytest.fixture(scope="session", autouse=True)
def test_settings():
    core_config.settings.OTP_TTL_SECONDS = 600
    core_config.settings.OTP_RESEND_INTERVAL_SECONDS = 0
    core_config.settings.JWT_SECRET = "test-secret"
    core_config.settings.REFRESH_SECRET = "test-refresh"
    core_config.settings.TESTING = True
    yield


@pytest.fixture(autouse=True)
def reset_state():
    otp_service.redis_client.flushall()
    notifications.registry.clear()
    yield
    notifications.registry.clear()


@pytest.fixture(autouse=True)
def mock_email_send(monkeypatch):
    sent = []

    def _fake_send(to_email: str, subject: str, body: str) -> None:
        sent.append({"to": to_email, "subject": subject, "body": body})

    monkeypatch.setattr(email_service, "send_email", _fake_send)
    return sent


@pytest.fixture()
def db():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()

    def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield session
    finally:
        session.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db):
    with TestClient(app) as c:
        yield c


def _make_seller(db, email="seller@example.com", mobile="9000000001", shop_name="Test Shop", verified=True):
    seller = Seller(
        first_name="Test",
        email=email,
        mobile_number=mobile,
        password_hash=hash_password("testpass123"),
        shop_name=shop_name,
        shop_address="1 Market Street",
        shop_category="Women",
        is_verified=verified,
    )
    db.add(seller)
    db.commit()
    db.refresh(seller)
    return seller


def _make_product(db, seller, name="Cotton Kurta", slug=None, price="100.00", variants=(("M", "Red", 10),)):
    product = Product(
        seller_id=seller.id,
        name=name,
        slug=slug or name.lower().replace(" ", "-"),
        price=Decimal(price),
        image_url=f"https://cdn.example.com/{seller.id}/{name}.jpg",
        is_active=True,
        variants=[ProductVariant(size=s, color=c, stock=q) for s, c, q in variants],
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def _make_order(db, seller, customer, status=OrderStatus.PENDING, total="250.00", created_at=None, is_read=False):
    """Insert an order directly, bypassing checkout."""
    created_at = created_at or datetime.utcnow()
    order = Order(
        customer_id=customer.id,
        seller_id=seller.id,
        status=status,
        total_price=Decimal(total),
        payment_method="COD",
        shipping_address=dict(ADDRESS),
        is_read=is_read,
        created_at=created_at,
        updated_at=created_at,
    )
    db.add(order)
    db.flush()
    order.order_number = f"ORD-TEST-{order.id:06d}"
    db.add(
        OrderItem(
            order_id=order.id,
            product_id=None,
            product_name="Cotton Kurta",
            size="M",
            color="Red",
            quantity=1,
            unit_price=Decimal(total),
            subtotal=Decimal(total),
        )
    )
    db.commit()
    db.refresh(order)
    return order


@pytest.fixture
def seller(db):
    return _make_seller(db)


@pytest.fixture
def other_seller(db):
    return _make_seller(db, email="other@example.com", mobile="9000000002", shop_name="Other Shop")


@pytest.fixture
def customer(db):
    customer = Customer(
        first_name="Asha",
        last_name="Rao",
        email="asha@example.com",
        password_hash=hash_password("customerpass1"),
        address=dict(ADDRESS),
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def pending_order(db, seller, customer):
    return _make_order(db, seller, customer)


@pytest.fixture
def seller_headers(seller):
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(str(seller.id), jwt_utils.SELLER_ROLE)}"}


@pytest.fixture
def other_seller_headers(other_seller):
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(str(other_seller.id), jwt_utils.SELLER_ROLE)}"}


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(str(customer.id), jwt_utils.CUSTOMER_ROLE)}"}


@pytest.fixture
def published(monkeypatch):
    """Record events handed to the fan-out instead of dispatching them."""
    events = []
    monkeypatch.setattr(notifications, "publish_event", events.append)
    return events


@pytest.fixture
def seller_factory(db):
    return lambda **kwargs: _make_seller(db, **kwargs)


@pytest.fixture
def product_factory(db):
    return lambda seller, **kwargs: _make_product(db, seller, **kwargs)


@pytest.fixture
def order_factory(db):
    return lambda seller, customer, **kwargs: _make_order(db, seller, customer, **kwargs)
