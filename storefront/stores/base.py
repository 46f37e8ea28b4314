from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from typing import Any

from storefront.core.config import get_settings
from storefront.schemas.catalog import Product
from storefront.schemas.orders import CustomerInfo, Order, OrderItem, PaymentStatus


class OrderStore(ABC):
    """Orders and their payment state; the only authority on payment status."""

    @abstractmethod
    async def create_order(
        self,
        customer_info: CustomerInfo,
        items: list[OrderItem],
        total: str,
        user_id: str | None = None,
    ) -> Order:
        """Persist a new pending order."""
        ...

    @abstractmethod
    async def get_order(self, order_id: str) -> Order | None:
        ...

    @abstractmethod
    async def set_transaction_id(self, order_id: str, transaction_id: str) -> Order | None:
        """Record the gateway transaction id; only while the order is pending."""
        ...

    @abstractmethod
    async def finalize_payment(
        self,
        order_id: str,
        status: PaymentStatus,
        transaction_id: str,
        payu_response: dict[str, Any],
        payment_method: str | None = None,
    ) -> Order | None:
        """
        Move a pending order to a terminal status.
        Returns the updated order, or None when the order is missing or already terminal
        (compare-and-set on payment_status == pending).
        """
        ...

    @abstractmethod
    async def list_orders(self, limit: int = 50, offset: int = 0) -> list[Order]:
        """Newest first."""
        ...

    @abstractmethod
    async def list_pending_before(self, cutoff: datetime) -> list[Order]:
        """Every order still pending that was created before ``cutoff``, oldest first."""
        ...


class ProductCatalog(ABC):
    @abstractmethod
    async def list_products(self) -> list[Product]:
        ...

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        ...

    @abstractmethod
    async def add_product(self, product: Product) -> Product:
        ...


@lru_cache
def _memory_backend():
    from storefront.stores.memory import MemoryCatalog, MemoryOrderStore
    return MemoryOrderStore(), MemoryCatalog()


def get_order_store() -> OrderStore:
    if get_settings().store_backend == "memory":
        return _memory_backend()[0]
    from storefront.stores.mongo import MongoOrderStore
    return MongoOrderStore()


def get_catalog() -> ProductCatalog:
    if get_settings().store_backend == "memory":
        return _memory_backend()[1]
    from storefront.stores.mongo import MongoCatalog
    return MongoCatalog()
