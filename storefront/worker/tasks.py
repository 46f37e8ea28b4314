"""ARQ job definitions."""

import uuid
from typing import Any

from arq import Retry
from arq.connections import RedisSettings

from storefront.core.config import get_settings
from storefront.core.logging import get_logger

log = get_logger(__name__)

MAX_TRIES = 3
RETRY_DELAY_SECONDS = 60


async def _run_with_dlq(
    job_name: str,
    job_id: str | None,
    args: list[Any],
    coro,
    order_id: str | None = None,
    attempt: int = 1,
) -> None:
    """Run coroutine; retry on failure, and on the last try persist to FailedJob then re-raise."""
    try:
        await coro
    except Exception as e:
        fid = job_id or str(uuid.uuid4())
        if attempt < MAX_TRIES:
            log.warning("job_retry", job=job_name, job_id=fid, order_id=order_id, attempt=attempt, reason=str(e))
            raise Retry(defer=RETRY_DELAY_SECONDS * attempt) from e
        from storefront.models.failed_job import FailedJob
        log.exception("job_failed", job=job_name, job_id=fid, order_id=order_id, attempt=attempt, reason=str(e))
        if get_settings().store_backend == "mongo":
            await FailedJob(
                job_name=job_name,
                job_id=fid,
                order_id=order_id,
                args=args,
                reason=str(e)[:2000],
                attempt=attempt,
            ).insert()
        raise


async def send_payment_success_email(ctx: dict[str, Any], order_id: str) -> None:
    """Email the customer their payment confirmation."""
    job_id = ctx.get("job_id") if isinstance(ctx.get("job_id"), str) else None

    async def _run() -> None:
        from storefront.services.notifications import send_payment_success_email as _send
        from storefront.stores.base import get_order_store
        order = await get_order_store().get_order(order_id)
        if not order:
            log.error("notification_order_missing", order_id=order_id)
            return
        log.info("job_start", job="send_payment_success_email", order_id=order_id)
        await _send(order)
        log.info("job_done", job="send_payment_success_email", order_id=order_id)

    await _run_with_dlq(
        "send_payment_success_email",
        job_id,
        [order_id],
        _run(),
        order_id=order_id,
        attempt=ctx.get("job_try", 1),
    )


async def startup(ctx: dict) -> None:
    from storefront.core.logging import configure_logging
    settings = get_settings()
    configure_logging(debug=settings.debug)
    if settings.store_backend == "mongo":
        from storefront.db.init import init_db
        await init_db()


async def shutdown(ctx: dict) -> None:
    pass


def get_redis_settings() -> RedisSettings:
    from urllib.parse import urlparse
    s = get_settings()
    u = urlparse(s.redis_url)
    return RedisSettings(
        host=u.hostname or "localhost",
        port=u.port or 6379,
        password=u.password,
        database=int(u.path.lstrip("/")) if u.path.lstrip("/") else 0,
    )


async def report_stale_pending_orders(ctx: dict[str, Any]) -> list[str]:
    """Cron: log orders still pending past the cutoff, for manual reconciliation with PayU."""
    from datetime import datetime, timedelta, timezone

    from storefront.stores.base import get_order_store
    s = get_settings()
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=s.stale_pending_minutes)
    stale = []
    for order in await get_order_store().list_pending_before(cutoff):
        stale.append(order.id)
        log.warning(
            "stale_pending_order",
            order_id=order.id,
            txnid=order.transaction_id,
            total=order.total,
            created_at=order.created_at.isoformat(),
        )
    if stale:
        log.info("stale_pending_orders", count=len(stale), cutoff_minutes=s.stale_pending_minutes)
    return stale
