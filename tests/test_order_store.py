"""In-memory order store: snapshot copies and the pending-only transition guard."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from storefront.schemas.orders import OrderItem, PaymentStatus

pytestmark = pytest.mark.asyncio


async def _create(store, customer, product_a, qty=1):
    return await store.create_order(customer, [OrderItem(product=product_a, quantity=qty)], "100.00")


async def test_create_starts_pending(store, customer, product_a):
    order = await _create(store, customer, product_a)
    assert order.payment_status is PaymentStatus.PENDING
    assert order.transaction_id is None
    assert order.user_id is None
    assert (await store.get_order(order.id)) == order


async def test_returned_orders_are_copies(store, customer, product_a):
    order = await _create(store, customer, product_a)
    order.items[0].quantity = 99
    assert (await store.get_order(order.id)).items[0].quantity == 1


async def test_finalize_only_from_pending(store, customer, product_a):
    order = await _create(store, customer, product_a)
    done = await store.finalize_payment(order.id, PaymentStatus.SUCCESS, "TXN1", {"status": "success"}, "CC")
    assert done.payment_status is PaymentStatus.SUCCESS
    assert done.payment_method == "CC"
    again = await store.finalize_payment(order.id, PaymentStatus.FAILED, "TXN1", {"status": "failure"}, "CC")
    assert again is None
    stored = await store.get_order(order.id)
    assert stored.payment_status is PaymentStatus.SUCCESS
    assert stored.payu_response == {"status": "success"}


async def test_transaction_id_only_while_pending(store, customer, product_a):
    order = await _create(store, customer, product_a)
    assert (await store.set_transaction_id(order.id, "TXN1")).transaction_id == "TXN1"
    await store.finalize_payment(order.id, PaymentStatus.FAILED, "TXN1", {})
    assert await store.set_transaction_id(order.id, "TXN2") is None
    assert (await store.get_order(order.id)).transaction_id == "TXN1"


async def test_missing_order(store):
    assert await store.get_order("nope") is None
    assert await store.finalize_payment("nope", PaymentStatus.SUCCESS, "TXN", {}) is None


async def test_concurrent_callbacks_finalize_once(store, customer, product_a):
    order = await _create(store, customer, product_a)
    results = await asyncio.gather(
        store.finalize_payment(order.id, PaymentStatus.SUCCESS, "TXN1", {}),
        store.finalize_payment(order.id, PaymentStatus.FAILED, "TXN1", {}),
        store.finalize_payment(order.id, PaymentStatus.SUCCESS, "TXN1", {}),
    )
    assert sum(r is not None for r in results) == 1
    assert results[0].payment_status is PaymentStatus.SUCCESS


async def test_list_orders_newest_first(store, customer, product_a):
    first = await _create(store, customer, product_a)
    second = await _create(store, customer, product_a)
    listed = await store.list_orders()
    assert {o.id for o in listed} == {first.id, second.id}
    assert listed[0].created_at >= listed[1].created_at
    assert len(await store.list_orders(limit=1)) == 1
    assert len(await store.list_orders(offset=2)) == 0


async def test_list_pending_before_cutoff_oldest_first(store, customer, product_a):
    now = datetime.now(timezone.utc)
    older = await _create(store, customer, product_a)
    old = await _create(store, customer, product_a)
    paid = await _create(store, customer, product_a)
    recent = await _create(store, customer, product_a)
    await store.finalize_payment(paid.id, PaymentStatus.SUCCESS, "TXN1", {})
    for order, age in ((older, 3), (old, 2), (paid, 3)):
        store._orders[order.id] = store._orders[order.id].model_copy(update={"created_at": now - timedelta(hours=age)})

    pending = await store.list_pending_before(now - timedelta(hours=1))
    assert [o.id for o in pending] == [older.id, old.id]
    assert recent.id not in {o.id for o in pending}
