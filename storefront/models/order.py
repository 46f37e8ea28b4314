from datetime import datetime, timezone
from typing import Any, Literal

from beanie import Document, Indexed
from pydantic import Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderDocument(Document):
    """Durable order record; admin views and reconciliation scripts read this layout."""
    order_id: Indexed(str, unique=True)
    customer_info: dict[str, Any]  # CustomerInfo, immutable after creation
    items: list[dict[str, Any]]  # [{product: {...snapshot}, quantity}]
    total: str  # 2-decimal string, computed server-side
    payment_status: Literal["pending", "success", "failed"] = "pending"
    transaction_id: str | None = None
    payu_response: dict[str, Any] | None = None
    payment_method: str | None = None
    user_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    class Settings:
        name = "orders"
        indexes = [
            [("transaction_id", 1)],
            [("payment_status", 1), ("created_at", -1)],
            [("user_id", 1), ("created_at", -1)],
        ]
