from fastapi import APIRouter, Depends

from storefront.core.exceptions import NotFoundError
from storefront.deps import catalog
from storefront.schemas.catalog import Product
from storefront.stores.base import ProductCatalog

router = APIRouter()


@router.get("", response_model=list[Product])
async def products_list(products: ProductCatalog = Depends(catalog)):
    """Catalog listing."""
    return await products.list_products()


@router.get("/{product_id}", response_model=Product)
async def product_get(product_id: str, products: ProductCatalog = Depends(catalog)):
    product = await products.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product
