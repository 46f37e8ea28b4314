"""Checkout: validate cart against the live catalog, create the order, hand off to PayU."""

from decimal import Decimal
from typing import Callable

from storefront.core.exceptions import InvalidQuantityError, ProductNotFoundError
from storefront.core.logging import bind_payment_context, get_logger
from storefront.core.money import format_amount, to_decimal
from storefront.schemas.orders import CheckoutRequest, OrderItem, PaymentHandoff
from storefront.services.payu import PaymentRequest, PayUGateway
from storefront.stores.base import OrderStore, ProductCatalog

log = get_logger(__name__)


async def price_cart(request: CheckoutRequest, catalog: ProductCatalog) -> tuple[list[OrderItem], Decimal]:
    """
    Resolve every line against the catalog and compute the authoritative total.
    Stock is checked, not reserved.
    """
    items: list[OrderItem] = []
    total = Decimal("0.00")
    for line in request.items:
        product = await catalog.get_product(line.product_id)
        if not product:
            raise ProductNotFoundError(line.product_id)
        if line.quantity <= 0 or line.quantity > product.stock:
            raise InvalidQuantityError(product.id, product.name, line.quantity, product.stock)
        total += to_decimal(product.price) * line.quantity
        items.append(OrderItem(product=product.model_copy(deep=True), quantity=line.quantity))
    return items, to_decimal(total)


async def initiate_payment(
    request: CheckoutRequest,
    store: OrderStore,
    catalog: ProductCatalog,
    gateway_factory: Callable[[], PayUGateway],
    user_id: str | None = None,
) -> PaymentHandoff:
    """
    Create a pending order and the signed form the browser posts to PayU.

    The gateway is built after the order exists: a configuration error leaves a
    pending order without transaction id, which is harmless since nothing was paid.
    """
    items, total = await price_cart(request, catalog)
    amount = format_amount(total)
    order = await store.create_order(request.customer_info, items, amount, user_id=user_id)
    bind_payment_context(order_id=order.id)
    log.info("order_created", order_id=order.id, amount=amount, lines=len(items))

    gateway = gateway_factory()
    txnid = gateway.generate_transaction_id()
    surl, furl = gateway.callback_urls()
    customer = request.customer_info
    form_data = gateway.prepare_payment_form(
        PaymentRequest(
            txnid=txnid,
            amount=amount,
            productinfo=f"Order #{order.id[:8]}",
            firstname=customer.first_name,
            lastname=customer.last_name,
            email=customer.email,
            phone=customer.phone,
            surl=surl,
            furl=furl,
            udf1=order.id,
        )
    )
    await store.set_transaction_id(order.id, txnid)
    log.info(
        "payment_initiated",
        order_id=order.id,
        txnid=txnid,
        amount=amount,
        payment_url=gateway.payment_url,
    )
    return PaymentHandoff(payment_url=gateway.payment_url, form_data=form_data, order_id=order.id)
