"""Order confirmation email: enqueued on verified payment, sent by the arq worker."""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage

from redis.exceptions import RedisError

from storefront.core.config import Settings, get_settings
from storefront.core.logging import get_logger
from storefront.core.money import format_amount, to_decimal
from storefront.schemas.orders import Order

log = get_logger(__name__)

SEND_PAYMENT_SUCCESS_JOB = "send_payment_success_email"


class Notifier(ABC):
    @abstractmethod
    async def payment_succeeded(self, order_id: str) -> None:
        """Schedule the confirmation for a verified payment. Must not raise."""
        ...


class ArqNotifier(Notifier):
    async def payment_succeeded(self, order_id: str) -> None:
        from arq import create_pool

        from storefront.worker.tasks import get_redis_settings
        try:
            redis = await create_pool(get_redis_settings())
            try:
                await redis.enqueue_job(SEND_PAYMENT_SUCCESS_JOB, order_id, _job_id=f"payment-success:{order_id}")
            finally:
                await redis.aclose()
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            log.error("notification_enqueue_failed", order_id=order_id, error=str(e))
            return
        log.info("notification_enqueued", order_id=order_id, job=SEND_PAYMENT_SUCCESS_JOB)


def get_notifier() -> Notifier:
    return ArqNotifier()


def build_payment_success_message(order: Order, settings: Settings | None = None) -> EmailMessage:
    s = settings or get_settings()
    customer = order.customer_info
    lines = [
        f"Dear {customer.first_name} {customer.last_name},",
        "",
        f"Thank you for your order at {s.store_name}. Your payment has been received.",
        "",
        f"Order: {order.id}",
        f"Transaction: {order.transaction_id or '-'}",
        "",
    ]
    for item in order.items:
        line_total = format_amount(to_decimal(item.product.price) * item.quantity)
        lines.append(f"  {item.quantity} x {item.product.name} @ {item.product.price} = {line_total}")
    lines += [
        "",
        f"Total paid: {order.total}",
        "",
        "Shipping to:",
        f"  {customer.address}",
        f"  {customer.zip_code} {customer.city}",
        f"  {customer.country}",
    ]
    msg = EmailMessage()
    msg["Subject"] = f"Payment confirmed - Order #{order.id[:8]}"
    msg["From"] = s.mail_from
    msg["To"] = customer.email
    msg.set_content("\n".join(lines))
    return msg


def _smtp_send(msg: EmailMessage, s: Settings) -> None:
    with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as smtp:
        if s.smtp_use_tls:
            smtp.starttls()
        if s.smtp_username:
            smtp.login(s.smtp_username, s.smtp_password)
        smtp.send_message(msg)


async def send_payment_success_email(order: Order) -> bool:
    """Send the confirmation; False when SMTP is not configured. SMTP errors propagate to the job runner."""
    s = get_settings()
    if not s.smtp_host:
        log.warning("mail_not_configured", order_id=order.id)
        return False
    msg = build_payment_success_message(order, s)
    await asyncio.to_thread(_smtp_send, msg, s)
    log.info("payment_success_email_sent", order_id=order.id, to=order.customer_info.email)
    return True
