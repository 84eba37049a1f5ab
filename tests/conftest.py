import os
from decimal import Decimal

# Must be set before settlement.database is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_settlement.db")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest
from sqlalchemy.orm import sessionmaker

from settlement.config import GatewaySettings
from settlement.database import Base, make_engine
from settlement.models import Order, OrderStatus
from settlement.orders import SqlOrderGateway

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_settlement.db"
engine = make_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def settings():
    return GatewaySettings(
        enable=True,
        demo=True,
        test_secret_key="sk_test_123",
        live_secret_key="sk_live_456",
        base_url="https://api.paystack.test",
        timeout=5,
        site_url="https://shop.test",
    )


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def gateway():
    return SqlOrderGateway(TestingSessionLocal)


@pytest.fixture
def make_order():
    def _make(order_id=1, total="500.00", status=OrderStatus.PENDING, email="buyer@example.com"):
        db = TestingSessionLocal()
        db.add(Order(id=order_id, total=Decimal(total), status=status, buyer_email=email))
        db.commit()
        db.close()
        return order_id
    return _make


@pytest.fixture
def fetch_order():
    def _fetch(order_id):
        db = TestingSessionLocal()
        order = db.get(Order, order_id)
        db.close()
        return order
    return _fetch
