"""Run ARQ worker. Usage: python -m storefront.worker.run_worker"""

import asyncio

from arq import run_worker
from arq.cron import cron

from storefront.worker.tasks import (
    MAX_TRIES,
    get_redis_settings,
    report_stale_pending_orders,
    send_payment_success_email,
    shutdown,
    startup,
)


class WorkerSettings:
    functions = [send_payment_success_email]
    cron_jobs = [
        cron(report_stale_pending_orders, minute={0, 15, 30, 45}),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = get_redis_settings()
    max_tries = MAX_TRIES


def main() -> None:
    # arq's run_worker drives its own event loop
    asyncio.set_event_loop(asyncio.new_event_loop())
    run_worker(WorkerSettings)


if __name__ == "__main__":
    main()
