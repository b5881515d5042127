import hashlib
import hmac
import json
import os
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Generator, List, Set

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["STRIPE_METADATA_TRUNCATE"] = "false"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from storefront.data.database import Base, SessionLocal, engine, get_db
from storefront.data.models import ProductModel, ProductVariantModel
from storefront.main import app as fastapi_app
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import JWT_ALGORITHM, JWT_SECRET

WEBHOOK_SECRET = "whsec_test"


# automatic marking by folder
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def catalog(db) -> Dict[str, Any]:
    """Two products, three variants; returns the ids."""
    sneaker = ProductModel(name="Canvas Low", description="Sneaker", price=Decimal("50.00"))
    sneaker.variants = [
        ProductVariantModel(color="black", sizes=["9", "10"], images=["/img/black.jpg"], stock=5),
        ProductVariantModel(color="white", sizes=["9"], images=[], stock=2),
    ]
    boot = ProductModel(name="City Boot", description="Boot", price=Decimal("25.00"))
    boot.variants = [ProductVariantModel(color="brown", sizes=["10"], images=["/img/boot.jpg"], stock=10)]
    db.add_all([sneaker, boot])
    db.commit()
    return {
        "sneaker": sneaker.id,
        "boot": boot.id,
        "black": sneaker.variants[0].id,
        "white": sneaker.variants[1].id,
        "brown": boot.variants[0].id,
    }


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture()
def client(app, db) -> Generator[TestClient, None, None]:
    # no lifespan: the db fixture owns the schema and the in-memory connection
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_notifications(monkeypatch) -> List[tuple]:
    """Records notifications instead of queueing celery tasks."""
    sent: List[tuple] = []

    def _fake_send(order_id, status):
        sent.append((order_id, status))
        return True

    monkeypatch.setattr(NotificationService, "send_order_notification", staticmethod(_fake_send))
    return sent


def create_access_token(user_id: str, role: str = "USER", expires_delta: timedelta | None = None) -> str:
    """Signs a token in the shape the auth service issues."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=7))
    payload = {"userId": str(user_id), "role": role, "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth_headers(user_id: str = "user-1", role: str = "USER") -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


@pytest.fixture()
def user_headers() -> Dict[str, str]:
    return auth_headers("user-1")


@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return auth_headers("admin-1", role="ADMIN")


def address(**overrides) -> Dict[str, Any]:
    data = {
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "address": "12 Analytical St",
        "city": "London",
        "state": "LN",
        "zipCode": "10001",
        "country": "UK",
    }
    data.update(overrides)
    return data


def payment_event(payment_intent_id: str, event_id: str = "evt_1", event_type: str = "payment_intent.succeeded") -> str:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": payment_intent_id, "object": "payment_intent"}},
    })


def sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Builds a stripe-signature header the way the processor does."""
    ts = timestamp or int(time.time())
    signed = f"{ts}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


class InMemoryEventLedger:
    """Process-local ledger with the same seen/remember interface as the redis one."""

    def __init__(self):
        self._ids: Set[str] = set()

    def seen(self, event_id: str) -> bool:
        return event_id in self._ids

    def remember(self, event_id: str) -> bool:
        if event_id in self._ids:
            return False
        self._ids.add(event_id)
        return True
