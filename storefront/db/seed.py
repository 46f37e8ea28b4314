"""Load the sample catalog. Usage: python -m storefront.db.seed"""

import asyncio
import uuid

from storefront.core.config import get_settings
from storefront.core.logging import configure_logging, get_logger
from storefront.schemas.catalog import Product
from storefront.stores.base import ProductCatalog, get_catalog

log = get_logger(__name__)

_NAMESPACE = uuid.UUID("5f1c1d4e-8d0b-4b8e-9a43-0c6f4f7f2b10")

SEED_PRODUCTS = [
    {
        "name": "Heritage Cashmere Overcoat",
        "description": "Italian cashmere overcoat with peak lapels and hand-stitched details.",
        "price": "2499.00",
        "category": "Outerwear",
        "image": "/assets/products/Black_cashmere_luxury_overcoat_85411d0a.png",
        "stock": 8,
    },
    {
        "name": "Pure Silk Dress Shirt",
        "description": "Mulberry silk dress shirt with mother-of-pearl buttons and French cuffs.",
        "price": "495.00",
        "category": "Shirts",
        "image": "/assets/products/White_silk_dress_shirt_2dcfc9eb.png",
        "stock": 15,
    },
    {
        "name": "Tailored Wool Blazer",
        "description": "Half-canvas charcoal wool blazer with working cuff buttons.",
        "price": "1899.00",
        "category": "Outerwear",
        "image": "/assets/products/Charcoal_tailored_wool_blazer_2de5467b.png",
        "stock": 10,
    },
    {
        "name": "Oxford Leather Dress Shoes",
        "description": "Goodyear-welted calfskin Oxfords with leather soles.",
        "price": "899.00",
        "category": "Footwear",
        "image": "/assets/products/Black_leather_oxford_shoes_d9b0f624.png",
        "stock": 12,
    },
    {
        "name": "Prestige Gold Timepiece",
        "description": "42mm automatic watch with sapphire crystal and leather strap.",
        "price": "3499.00",
        "category": "Accessories",
        "image": "/assets/products/Gold_luxury_wristwatch_6ea8d976.png",
        "stock": 5,
    },
    {
        "name": "Merino Wool Turtleneck",
        "description": "Superfine merino turtleneck in navy.",
        "price": "425.00",
        "category": "Knitwear",
        "image": "/assets/products/Navy_merino_turtleneck_sweater_0e1f12c8.png",
        "stock": 20,
    },
]


def seed_product_id(name: str) -> str:
    """Stable id so re-running the seed does not duplicate products."""
    return str(uuid.uuid5(_NAMESPACE, name))


async def seed_catalog(catalog: ProductCatalog) -> int:
    """Insert missing sample products; return how many were added."""
    added = 0
    for raw in SEED_PRODUCTS:
        product = Product(id=seed_product_id(raw["name"]), **raw)
        if await catalog.get_product(product.id):
            continue
        await catalog.add_product(product)
        added += 1
    log.info("catalog_seeded", added=added, total=len(SEED_PRODUCTS))
    return added


async def main() -> None:
    settings = get_settings()
    configure_logging(debug=settings.debug)
    if settings.store_backend == "mongo":
        from storefront.db.init import init_db
        await init_db()
    await seed_catalog(get_catalog())


if __name__ == "__main__":
    asyncio.run(main())
