"""Shared fixtures: a throwaway SQLite database, the app client and helpers"""

import asyncio
import os
import tempfile
from pathlib import Path

TEST_DIR = Path(tempfile.mkdtemp(prefix="storefront-tests-"))
DATABASE_URL = f"sqlite:///{TEST_DIR / 'test.db'}"

# must be set before the application modules read their settings
os.environ["DATABASE_URL"] = DATABASE_URL
os.environ["JWT_SECRET"] = "test-access-secret-0123456789abcdef"
os.environ["REFRESH_TOKEN_SECRET"] = "test-refresh-secret-0123456789abcdef"
os.environ["RATE_LIMIT_MAX_REQUESTS"] = "100000"
os.environ["UPLOAD_DIR"] = str(TEST_DIR / "uploads")
os.environ["DB_CONNECT_BACKOFF_SECONDS"] = "0"
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""

import pytest
from databases import Database
from fastapi.testclient import TestClient

import main
from database import Base, create_tables, engine
from notifications import get_notifier


class RecordingNotifier:
    """Stands in for SMTP; records sends or fails every one of them"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def _record(self, kind, payload):
        if self.fail:
            raise RuntimeError("SMTP unavailable")
        self.sent.append((kind, payload))

    async def send_order_confirmation(self, order):
        await self._record("order_confirmation", order)

    async def send_contact_receipt(self, contact):
        await self._record("contact_receipt", contact)

    async def send_contact_alert(self, contact):
        await self._record("contact_alert", contact)

    def kinds(self):
        return [kind for kind, _ in self.sent]


@pytest.fixture(autouse=True)
def clean_tables():
    create_tables()
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    main.app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    main.app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def failing_notifier():
    recorder = RecordingNotifier(fail=True)
    main.app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    main.app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def run_db():
    """Run ``fn(db)`` on its own connection to the test database."""

    def run(fn):
        async def go():
            db = Database(DATABASE_URL)
            await db.connect()
            try:
                return await fn(db)
            finally:
                await db.disconnect()

        return asyncio.run(go())

    return run


def register_and_login(client, email="owner@shop.com", password="secret123", name="Owner"):
    client.post("/api/auth/admin-register", json={"email": email, "password": password, "name": name})
    resp = client.post("/api/auth/admin-login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def admin_login(client):
    return register_and_login(client)


@pytest.fixture
def admin_headers(admin_login):
    return {"Authorization": f"Bearer {admin_login['token']}"}


@pytest.fixture
def order_payload():
    return {
        "items": [{"productId": "p1", "name": "Watch", "price": 100, "quantity": 2}],
        "totalPrice": 200,
        "discountAmount": 20,
        "shippingAddress": "1 Main St",
        "paymentMethod": "COD",
        "customerEmail": "buyer@shop.com",
    }
