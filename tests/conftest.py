import os

# Switches de test lus par le lifespan: à poser avant l'import de l'app
os.environ.setdefault("USE_FAKE_REDIS_FOR_TESTS", "1")
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import asyncio
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import MagicMock

import fakeredis
import pytest
from fakeredis.aioredis import FakeRedis
from fastapi.testclient import TestClient

from storefront.app import app as fastapi_app
from storefront.cart.models import LineCandidate
from storefront.cart.storage import RedisCartStorage
from storefront.cart.store import CartStore
from storefront.checkout.collaborators import PaymentInitialization
from storefront.checkout.models import Order, ShippingInfo
from storefront.checkout.service import CheckoutOrchestrator
from storefront.sessions import ShopperSessions

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class StubStock:
    """
    Validateur de stock contrôlable:
    - stock[product_id] = quantité disponible (absent: illimité)
    - gates[quantity] = asyncio.Event bloquant la vérification de cette quantité
    """

    def __init__(self):
        self.stock: Dict[str, int] = {}
        self.gates: Dict[int, asyncio.Event] = {}
        self.calls: List[tuple] = []

    async def check(self, product_id: str, variant_id: Optional[str], requested_quantity: int) -> bool:
        self.calls.append((product_id, variant_id, requested_quantity))
        gate = self.gates.get(requested_quantity)
        if gate is not None:
            await gate.wait()
        limit = self.stock.get(product_id)
        return limit is None or requested_quantity <= limit


class FakeOrders:
    def __init__(self):
        self.payloads: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.order = Order(id="ord_1", order_number="FJ-1001")

    async def create_order(self, payload: Dict[str, Any]) -> Order:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.order


class FakePayments:
    def __init__(self):
        self.payloads: List[Dict[str, Any]] = []
        self.errors: List[Exception] = []
        self.gate: Optional[asyncio.Event] = None
        self.result = PaymentInitialization(
            "https://sandbox.payfast.co.za/eng/process",
            {
                "merchant_id": "10000100",
                "merchant_key": "46f0cd694581a",
                "amount": Decimal("108.48"),
                "item_name": "Order #FJ-1001",
                "email_confirmation": True,
                "signature": "a1b2c3",
            },
        )

    async def initialize_payment(self, payload: Dict[str, Any], order_id: Optional[str] = None) -> PaymentInitialization:
        self.payloads.append(payload)
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def stock() -> StubStock:
    return StubStock()

@pytest.fixture
def orders() -> FakeOrders:
    return FakeOrders()

@pytest.fixture
def payments() -> FakePayments:
    return FakePayments()

@pytest.fixture
def fake_redis():
    return FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)

@pytest.fixture
def storage(fake_redis) -> RedisCartStorage:
    return RedisCartStorage(fake_redis, key_prefix="fj-cart")

@pytest.fixture
def store(storage, stock) -> CartStore:
    return CartStore("cart-1", storage, stock)

@pytest.fixture
def checkout(store, orders, payments) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(store, orders, payments)

@pytest.fixture
def make_candidate():
    def _make(**overrides) -> LineCandidate:
        data: Dict[str, Any] = {
            "product_id": "ring-1",
            "name": "Gold Ring",
            "slug": "gold-ring",
            "unit_price": Decimal("49.99"),
            "compare_at_price": Decimal("59.99"),
        }
        data.update(overrides)
        return LineCandidate(**data)
    return _make

@pytest.fixture
def shipping_info() -> ShippingInfo:
    return ShippingInfo(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="555-0100",
        address1="1 Main St",
        city="Springfield",
        state="IL",
        zip_code="62701",
    )

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app, stock, orders, payments) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        # collaborateurs de test à la place du stock Supabase et de l'API commerce
        app.state.sessions = ShopperSessions(
            storage=app.state.cart_storage,
            validator=stock,
            orders=orders,
            payments=payments,
        )
        yield c

# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(autouse=True)
def mock_supabase(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_user_supabase", lambda token: MagicMock())
