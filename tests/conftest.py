import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

# In-memory store and fixed gateway secrets; must be set before the app is imported
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("PAYU_MERCHANT_KEY", "testkey")
os.environ.setdefault("PAYU_MERCHANT_SALT", "testsalt")
os.environ.setdefault("PUBLIC_BASE_URL", "http://api.test")

from storefront.schemas.catalog import Product  # noqa: E402
from storefront.schemas.orders import CustomerInfo, Order  # noqa: E402
from storefront.services.notifications import Notifier  # noqa: E402
from storefront.services.payu import PayUConfig, PayUGateway  # noqa: E402
from storefront.stores.memory import MemoryCatalog, MemoryOrderStore  # noqa: E402

TEST_KEY = "testkey"
TEST_SALT = "testsalt"


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def payment_succeeded(self, order_id: str) -> None:
        self.sent.append(order_id)


@pytest.fixture
def gateway() -> PayUGateway:
    return PayUGateway(
        PayUConfig(
            merchant_key=TEST_KEY,
            merchant_salt=TEST_SALT,
            environment="test",
            callback_base_url="http://api.test",
        )
    )


@pytest.fixture
def product_a() -> Product:
    return Product(id="prod-a", name="Product A", description="A", price="100.00", category="Shirts", stock=5)


@pytest.fixture
def product_b() -> Product:
    return Product(id="prod-b", name="Product B", description="B", price="0.10", category="Socks", stock=10)


@pytest.fixture
def catalog(product_a, product_b) -> MemoryCatalog:
    return MemoryCatalog([product_a, product_b])


@pytest.fixture
def store() -> MemoryOrderStore:
    return MemoryOrderStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def customer_info() -> dict:
    return {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": "asha@example.com",
        "phone": "9999999999",
        "address": "12 MG Road",
        "city": "Pune",
        "zipCode": "411001",
        "country": "India",
    }


@pytest.fixture
def customer(customer_info) -> CustomerInfo:
    return CustomerInfo.model_validate(customer_info)


@pytest.fixture
def client(store, catalog, gateway, notifier) -> Generator[TestClient, None, None]:
    from storefront import deps
    from storefront.main import app
    app.dependency_overrides[deps.order_store] = lambda: store
    app.dependency_overrides[deps.catalog] = lambda: catalog
    app.dependency_overrides[deps.gateway_factory] = lambda: (lambda: gateway)
    app.dependency_overrides[deps.notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_callback(gateway) -> Callable[..., dict]:
    """PayU-style callback form for an order, signed with the test salt unless told otherwise."""

    def _make(order: Order, status: str = "success", sign: bool = True, **overrides) -> dict:
        form = {
            "txnid": order.transaction_id or "TXN-MISSING",
            "amount": order.total,
            "productinfo": f"Order #{order.id[:8]}",
            "firstname": order.customer_info.first_name,
            "email": order.customer_info.email,
            "status": status,
            "mihpayid": "403993715521937565",
            "mode": "UPI",
            "udf1": order.id,
        }
        form.update(overrides)
        if sign:
            form["hash"] = gateway.response_hash(
                form["txnid"],
                form["amount"],
                form["productinfo"],
                form["firstname"],
                form["email"],
                form["status"],
                form["udf1"],
            )
        return form

    return _make
