from storefront.models.failed_job import FailedJob
from storefront.models.order import OrderDocument
from storefront.models.product import ProductDocument

__all__ = [
    "FailedJob",
    "OrderDocument",
    "ProductDocument",
]
