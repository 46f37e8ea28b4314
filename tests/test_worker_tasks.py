from datetime import datetime, timedelta, timezone

import pytest

from storefront.schemas.orders import OrderItem, PaymentStatus
from storefront.worker import tasks

pytestmark = pytest.mark.asyncio


def _backdate(store, order_id, **delta):
    when = datetime.now(timezone.utc) - timedelta(**delta)
    store._orders[order_id] = store._orders[order_id].model_copy(update={"created_at": when})


async def test_stale_pending_orders_are_reported(store, customer, product_a, monkeypatch):
    old = await store.create_order(customer, [OrderItem(product=product_a, quantity=1)], "100.00")
    fresh = await store.create_order(customer, [OrderItem(product=product_a, quantity=1)], "100.00")
    paid = await store.create_order(customer, [OrderItem(product=product_a, quantity=1)], "100.00")
    await store.finalize_payment(paid.id, PaymentStatus.SUCCESS, "TXN", {})
    for order_id in (old.id, paid.id):
        _backdate(store, order_id, hours=2)

    monkeypatch.setattr("storefront.stores.base.get_order_store", lambda: store)
    stale = await tasks.report_stale_pending_orders({})
    assert stale == [old.id]
    assert fresh.id not in stale


async def test_stale_order_found_behind_many_newer_orders(store, customer, product_a, monkeypatch):
    old = await store.create_order(customer, [OrderItem(product=product_a, quantity=1)], "100.00")
    _backdate(store, old.id, hours=5)
    for _ in range(501):
        await store.create_order(customer, [OrderItem(product=product_a, quantity=1)], "100.00")

    monkeypatch.setattr("storefront.stores.base.get_order_store", lambda: store)
    assert await tasks.report_stale_pending_orders({}) == [old.id]


async def test_redis_settings_from_url(monkeypatch):
    from storefront.core.config import Settings
    monkeypatch.setattr(tasks, "get_settings", lambda: Settings(REDIS_URL="redis://:pw@cache.internal:6380/2"))
    rs = tasks.get_redis_settings()
    assert (rs.host, rs.port, rs.password, rs.database) == ("cache.internal", 6380, "pw", 2)
