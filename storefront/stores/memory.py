"""Process-local stores for tests and single-process development."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any

from storefront.schemas.catalog import Product
from storefront.schemas.orders import CustomerInfo, Order, OrderItem, PaymentStatus
from storefront.stores.base import OrderStore, ProductCatalog


class MemoryOrderStore(OrderStore):
    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def create_order(
        self,
        customer_info: CustomerInfo,
        items: list[OrderItem],
        total: str,
        user_id: str | None = None,
    ) -> Order:
        order = Order(
            id=str(uuid.uuid4()),
            customer_info=customer_info,
            items=[item.model_copy(deep=True) for item in items],
            total=total,
            payment_status=PaymentStatus.PENDING,
            created_at=datetime.now(timezone.utc),
            user_id=user_id,
        )
        async with self._lock:
            self._orders[order.id] = order
        return order.model_copy(deep=True)

    async def get_order(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def set_transaction_id(self, order_id: str, transaction_id: str) -> Order | None:
        async with self._lock:
            order = self._orders.get(order_id)
            if not order or order.payment_status is not PaymentStatus.PENDING:
                return None
            order = order.model_copy(update={"transaction_id": transaction_id})
            self._orders[order_id] = order
        return order.model_copy(deep=True)

    async def finalize_payment(
        self,
        order_id: str,
        status: PaymentStatus,
        transaction_id: str,
        payu_response: dict[str, Any],
        payment_method: str | None = None,
    ) -> Order | None:
        async with self._lock:
            order = self._orders.get(order_id)
            if not order or order.payment_status is not PaymentStatus.PENDING:
                return None
            order = order.model_copy(
                update={
                    "payment_status": status,
                    "transaction_id": transaction_id,
                    "payu_response": dict(payu_response),
                    "payment_method": payment_method,
                }
            )
            self._orders[order_id] = order
        return order.model_copy(deep=True)

    async def list_orders(self, limit: int = 50, offset: int = 0) -> list[Order]:
        orders = sorted(self._orders.values(), key=lambda o: o.created_at, reverse=True)
        return [o.model_copy(deep=True) for o in orders[offset:offset + limit]]

    async def list_pending_before(self, cutoff: datetime) -> list[Order]:
        stale = [
            o
            for o in self._orders.values()
            if o.payment_status is PaymentStatus.PENDING and o.created_at < cutoff
        ]
        return [o.model_copy(deep=True) for o in sorted(stale, key=lambda o: o.created_at)]


class MemoryCatalog(ProductCatalog):
    def __init__(self, products: list[Product] | None = None) -> None:
        self._products: dict[str, Product] = {p.id: p for p in products or []}

    async def list_products(self) -> list[Product]:
        return list(self._products.values())

    async def get_product(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    async def add_product(self, product: Product) -> Product:
        self._products[product.id] = product
        return product
