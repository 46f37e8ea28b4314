from pydantic import Field, field_validator

from storefront.core.money import format_amount
from storefront.schemas import CamelModel


class Product(CamelModel):
    id: str
    name: str
    description: str = ""
    price: str  # 2-decimal string, e.g. "2499.00"
    category: str = ""
    image: str = ""
    stock: int = Field(default=10, ge=0)

    @field_validator("price", mode="before")
    @classmethod
    def _normalize_price(cls, v):
        amount = format_amount(v)
        if amount.startswith("-"):
            raise ValueError(f"Invalid price: {v!r}")
        return amount
