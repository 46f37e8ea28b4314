from fastapi import APIRouter, Depends

from storefront.core.exceptions import NotFoundError
from storefront.deps import order_store
from storefront.schemas.orders import OrderStatusView
from storefront.stores.base import OrderStore

router = APIRouter()


@router.get("/{order_id}", response_model=OrderStatusView)
async def order_status(order_id: str, store: OrderStore = Depends(order_store)):
    """Payment status for the result pages; no customer details."""
    order = await store.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    return OrderStatusView.from_order(order)
