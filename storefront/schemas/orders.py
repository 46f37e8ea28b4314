import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from storefront.schemas import CamelModel
from storefront.schemas.catalog import Product

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class CustomerInfo(CamelModel):
    """Contact and shipping details captured at checkout; never edited afterwards."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, str_strip_whitespace=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class OrderItem(CamelModel):
    product: Product  # snapshot at checkout time
    quantity: int


class Order(CamelModel):
    id: str
    customer_info: CustomerInfo
    items: list[OrderItem]
    total: str
    payment_status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    payu_response: dict[str, Any] | None = None
    payment_method: str | None = None
    created_at: datetime
    user_id: str | None = None


class CheckoutLine(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int

    @model_validator(mode="before")
    @classmethod
    def _accept_cart_shape(cls, data: Any) -> Any:
        # Cart clients send {"product": {...}, "quantity": n}; only the id is trusted.
        if isinstance(data, dict) and "productId" not in data and "product_id" not in data:
            product = data.get("product")
            if isinstance(product, dict) and "id" in product:
                return {"productId": product["id"], "quantity": data.get("quantity")}
        return data


class CheckoutRequest(CamelModel):
    customer_info: CustomerInfo
    items: list[CheckoutLine] = Field(min_length=1)


class PaymentHandoff(CamelModel):
    """What the client auto-submits to the gateway as a browser form post."""

    payment_url: str
    form_data: dict[str, str]
    order_id: str


class OrderStatusView(CamelModel):
    id: str
    payment_status: PaymentStatus
    total: str
    transaction_id: str | None = None
    payment_method: str | None = None
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderStatusView":
        return cls(
            id=order.id,
            payment_status=order.payment_status,
            total=order.total,
            transaction_id=order.transaction_id,
            payment_method=order.payment_method,
            created_at=order.created_at,
        )
