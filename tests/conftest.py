import hashlib
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("secret_key", "test-secret-key")
os.environ.setdefault("MIDTRANS_SERVER_KEY", "SB-Mid-server-test")
os.environ.setdefault("MIDTRANS_CLIENT_KEY", "SB-Mid-client-test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from estore.database import build_engine, create_db_and_tables, get_session
from estore.errors import GatewayUnavailable
from estore.main import app
from estore.models.product import Product
from estore.models.user import User
from estore.services.payment_gateway import get_payment_gateway
from estore.services.r2_client import get_blob_store
from estore.utils.hash import hash_password
from estore.utils.token import create_access_token

SERVER_KEY = os.environ["MIDTRANS_SERVER_KEY"]


class FakeGateway:
    def __init__(self):
        self.calls = []
        self.fail = False

    def create_transaction(self, order, user, customer=None):
        if self.fail:
            raise GatewayUnavailable("Failed to create transaction")
        self.calls.append((order.external_order_id, order.total_amount, user.id))
        return {
            "token": f"snap-token-{order.external_order_id}",
            "redirect_url": f"https://pay.example/{order.external_order_id}",
        }


class FakeBlobStore:
    def __init__(self):
        self.deleted = []

    def get_reference(self, key):
        return f"https://files.example/{key}?signed=1"

    def delete(self, key):
        self.deleted.append(key)


def sign(order_id, status, amount, server_key=SERVER_KEY):
    return hashlib.sha512(f"{order_id}{status}{amount}{server_key}".encode()).hexdigest()


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'store.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def client(engine, gateway, blob_store):
    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role="customer", password="secret123"):
        counter["n"] += 1
        user = User(
            name=f"User {counter['n']}",
            email=f"user{counter['n']}@example.com",
            password=hash_password(password),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(session):
    counter = {"n": 0}

    def _make(price=100000, title=None):
        counter["n"] += 1
        title = title or f"Template Pack {counter['n']}"
        product = Product(
            title=title,
            slug=f"template-pack-{counter['n']}",
            description="Digital download",
            price=price,
            file_key=f"products/pack-{counter['n']}.zip",
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


def auth_header(user):
    token = create_access_token({"user_id": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}
