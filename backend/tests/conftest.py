import hashlib
import hmac
import os
import tempfile
from functools import partial
from pathlib import Path
from types import SimpleNamespace

import pytest

DB_FILE = Path(tempfile.gettempdir()) / "zealous_test.db"
RAZORPAY_SECRET = "rzp_test_secret"

# Settings and the engine are built at import time
os.environ.update({
    "DATABASE_URL": f"sqlite+aiosqlite:///{DB_FILE}",
    "SEED_SAMPLE_DATA": "false",
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": RAZORPAY_SECRET,
    "COOKIE_SECURE": "false",
    "DOMAIN_URL": "http://localhost:3000",
    "LOG_LEVEL": "WARNING",
})

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from zealous.database import async_session_maker  # noqa: E402
from zealous.envelope import UpstreamError  # noqa: E402
from zealous.models import Benefit, Category, HealthCondition, Product, ProductType  # noqa: E402
from zealous.server import app  # noqa: E402
from zealous.services.mailer import Mailer, get_mailer  # noqa: E402
from zealous.services.razorpay_gateway import RazorpayGateway, get_gateway  # noqa: E402
from zealous.services.shiprocket import ShiprocketClient, get_carrier  # noqa: E402

PASSWORD = "Secret#123"
ADDRESS = {
    "fullName": "Asha Rao",
    "phone": "9876543210",
    "email": "asha@example.com",
    "streetAddressHouseNo": "12 MG Road",
    "cityTown": "Pune",
    "state": "Maharashtra",
    "pinCode": "411001",
    "addressType": "Home",
}


class FakeGateway(RazorpayGateway):
    """Real signature check; order creation and payment fetch answered in-process."""

    def __init__(self):
        super().__init__("rzp_test_key", RAZORPAY_SECRET)
        self.method = "upi"
        self.fetched = []
        self.client.order = SimpleNamespace(create=self._create_order)
        self.client.payment = SimpleNamespace(fetch=self._fetch_payment)

    def _create_order(self, data):
        return {"id": "order_test_1", "status": "created", **data}

    def _fetch_payment(self, payment_id):
        self.fetched.append(payment_id)
        return {"id": payment_id, "method": self.method, "status": "captured"}


class FakeCarrier(ShiprocketClient):
    def __init__(self):
        super().__init__("https://carrier.test", "ops@example.com", "pw", token_ttl_seconds=60)
        self.created = []
        self.canceled = []
        self.next_order_id = 5001
        self.fail_create = False
        self.fail_lookup_for = set()

    def create_order(self, payload):
        if self.fail_create:
            raise UpstreamError("shiprocket", "order create failed: 422")
        self.created.append(payload)
        order_id = self.next_order_id
        self.next_order_id += 1
        return {"order_id": order_id, "shipment_id": order_id * 10, "status": "NEW"}

    def get_order(self, order_id):
        if order_id in self.fail_lookup_for:
            raise UpstreamError("shiprocket", "lookup failed")
        return {"data": {"id": order_id, "payment_method": "prepaid", "payment_status": "Paid",
                         "shipments": {"status": "SHIPPED"}}}

    def cancel_orders(self, order_ids):
        self.canceled.extend(order_ids)
        return {"status_code": 200, "message": "Order cancelled successfully."}


class FakeMailer(Mailer):
    def __init__(self):
        super().__init__("key-test", "mg.example.com")
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "<msg@mg.example.com>", "message": "Queued. Thank you."}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def carrier():
    return FakeCarrier()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(gateway, carrier, mailer):
    if DB_FILE.exists():
        DB_FILE.unlink()
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_carrier] = lambda: carrier
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def run(client):
    """Run a coroutine function on the app's event loop."""
    def _run(fn, *args, **kwargs):
        return client.portal.call(partial(fn, *args, **kwargs))
    return _run


@pytest.fixture
def login(client):
    """Register (if needed) and log in; returns bearer headers."""
    def _login(email="asha@example.com", password=PASSWORD):
        client.post("/api/auth?type=register", json={"email": email, "password": password})
        resp = client.post("/api/auth?type=login", json={"email": email, "password": password})
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['result']['accessToken']}"}
    return _login


@pytest.fixture
def headers(login):
    return login()


async def _get_or_create(db, model, name, **fields):
    result = await db.execute(select(model).where(model.name == name))
    row = result.scalars().first()
    if row is None:
        row = model(name=name, **fields)
        db.add(row)
        await db.flush()
    return row


async def insert_product(name="Ashwagandha Capsules", price=100.0, discount=0, category="Ayurvedic",
                         product_types=(), benefits=(), health_conditions=(), **fields):
    async with async_session_maker() as db:
        cat = await _get_or_create(db, Category, category, icon="fa-leaf", description=f"{category} range")
        types = [await _get_or_create(db, ProductType, n) for n in product_types]
        bens = [await _get_or_create(db, Benefit, n, icon="fa-star", description=n) for n in benefits]
        conds = [await _get_or_create(db, HealthCondition, n) for n in health_conditions]
        fields.setdefault("sku", name.upper().replace(" ", "-")[:20])
        fields.setdefault("about", f"About {name}")
        product = Product(
            category_id=cat.id,
            name=name,
            price=price,
            discount=discount,
            product_types=types,
            benefits=bens,
            health_conditions=conds,
            **fields,
        )
        db.add(product)
        await db.commit()
        return product.id


async def count_rows(model, *where):
    async with async_session_maker() as db:
        stmt = select(func.count()).select_from(model)
        for clause in where:
            stmt = stmt.where(clause)
        return await db.scalar(stmt)


async def fetch_all(model, *where):
    async with async_session_maker() as db:
        stmt = select(model)
        for clause in where:
            stmt = stmt.where(clause)
        result = await db.execute(stmt.order_by(model.id))
        return list(result.scalars().all())


@pytest.fixture
def make_product(run):
    def _make(**kwargs):
        return run(insert_product, **kwargs)
    return _make


@pytest.fixture
def count(run):
    def _count(model, *where):
        return run(count_rows, model, *where)
    return _count


@pytest.fixture
def rows(run):
    def _rows(model, *where):
        return run(fetch_all, model, *where)
    return _rows


@pytest.fixture
def sign():
    def _sign(order_id, payment_id, secret=RAZORPAY_SECRET):
        return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()
    return _sign


@pytest.fixture
def address():
    return dict(ADDRESS)
