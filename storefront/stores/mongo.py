"""MongoDB (Beanie) backend. Requires init_db() to have run."""

import uuid
from datetime import datetime, timezone
from typing import Any

from beanie import UpdateResponse
from beanie.operators import Set
from pymongo.errors import PyMongoError

from storefront.core.exceptions import PersistenceError
from storefront.core.logging import get_logger
from storefront.models.order import OrderDocument
from storefront.models.product import ProductDocument
from storefront.schemas.catalog import Product
from storefront.schemas.orders import CustomerInfo, Order, OrderItem, PaymentStatus
from storefront.stores.base import OrderStore, ProductCatalog

log = get_logger(__name__)


def _to_order(doc: OrderDocument) -> Order:
    return Order(
        id=doc.order_id,
        customer_info=CustomerInfo.model_validate(doc.customer_info),
        items=[OrderItem.model_validate(i) for i in doc.items],
        total=doc.total,
        payment_status=PaymentStatus(doc.payment_status),
        transaction_id=doc.transaction_id,
        payu_response=doc.payu_response,
        payment_method=doc.payment_method,
        created_at=doc.created_at,
        user_id=doc.user_id,
    )


def _to_product(doc: ProductDocument) -> Product:
    return Product(
        id=doc.product_id,
        name=doc.name,
        description=doc.description,
        price=doc.price,
        category=doc.category,
        image=doc.image,
        stock=doc.stock,
    )


class MongoOrderStore(OrderStore):
    async def create_order(
        self,
        customer_info: CustomerInfo,
        items: list[OrderItem],
        total: str,
        user_id: str | None = None,
    ) -> Order:
        doc = OrderDocument(
            order_id=str(uuid.uuid4()),
            customer_info=customer_info.model_dump(by_alias=True),
            items=[i.model_dump(by_alias=True) for i in items],
            total=total,
            payment_status=PaymentStatus.PENDING.value,
            user_id=user_id,
        )
        try:
            await doc.insert()
        except PyMongoError as e:
            log.error("order_insert_failed", error=str(e))
            raise PersistenceError() from e
        return _to_order(doc)

    async def get_order(self, order_id: str) -> Order | None:
        try:
            doc = await OrderDocument.find_one(OrderDocument.order_id == order_id)
        except PyMongoError as e:
            log.error("order_lookup_failed", order_id=order_id, error=str(e))
            raise PersistenceError() from e
        return _to_order(doc) if doc else None

    async def _update_pending(self, order_id: str, fields: dict[str, Any]) -> Order | None:
        fields["updated_at"] = datetime.now(timezone.utc)
        try:
            doc = await OrderDocument.find_one(
                OrderDocument.order_id == order_id,
                OrderDocument.payment_status == PaymentStatus.PENDING.value,
            ).update(Set(fields), response_type=UpdateResponse.NEW_DOCUMENT)
        except PyMongoError as e:
            log.error("order_update_failed", order_id=order_id, error=str(e))
            raise PersistenceError() from e
        return _to_order(doc) if doc else None

    async def set_transaction_id(self, order_id: str, transaction_id: str) -> Order | None:
        return await self._update_pending(order_id, {"transaction_id": transaction_id})

    async def finalize_payment(
        self,
        order_id: str,
        status: PaymentStatus,
        transaction_id: str,
        payu_response: dict[str, Any],
        payment_method: str | None = None,
    ) -> Order | None:
        return await self._update_pending(
            order_id,
            {
                "payment_status": status.value,
                "transaction_id": transaction_id,
                "payu_response": payu_response,
                "payment_method": payment_method,
            },
        )

    async def list_orders(self, limit: int = 50, offset: int = 0) -> list[Order]:
        try:
            docs = (
                await OrderDocument.find_all()
                .sort(-OrderDocument.created_at)
                .skip(offset)
                .limit(limit)
                .to_list()
            )
        except PyMongoError as e:
            log.error("order_list_failed", error=str(e))
            raise PersistenceError() from e
        return [_to_order(d) for d in docs]

    async def list_pending_before(self, cutoff: datetime) -> list[Order]:
        try:
            docs = (
                await OrderDocument.find(
                    OrderDocument.payment_status == PaymentStatus.PENDING.value,
                    OrderDocument.created_at < cutoff,
                )
                .sort(+OrderDocument.created_at)
                .to_list()
            )
        except PyMongoError as e:
            log.error("stale_order_query_failed", error=str(e))
            raise PersistenceError() from e
        return [_to_order(d) for d in docs]


class MongoCatalog(ProductCatalog):
    async def list_products(self) -> list[Product]:
        try:
            docs = await ProductDocument.find_all().to_list()
        except PyMongoError as e:
            raise PersistenceError() from e
        return [_to_product(d) for d in docs]

    async def get_product(self, product_id: str) -> Product | None:
        try:
            doc = await ProductDocument.find_one(ProductDocument.product_id == product_id)
        except PyMongoError as e:
            raise PersistenceError() from e
        return _to_product(doc) if doc else None

    async def add_product(self, product: Product) -> Product:
        doc = ProductDocument(
            product_id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            image=product.image,
            stock=product.stock,
        )
        try:
            await doc.insert()
        except PyMongoError as e:
            raise PersistenceError() from e
        return product
