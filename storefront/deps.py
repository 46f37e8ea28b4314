"""Shared FastAPI dependencies; tests swap these through app.dependency_overrides."""

from typing import Callable

from storefront.core.config import Settings, get_settings
from storefront.services.notifications import Notifier, get_notifier
from storefront.services.payu import PayUGateway, get_gateway
from storefront.stores.base import OrderStore, ProductCatalog, get_catalog, get_order_store


def order_store() -> OrderStore:
    return get_order_store()


def catalog() -> ProductCatalog:
    return get_catalog()


def gateway_factory() -> Callable[[], PayUGateway]:
    """Deferred so a missing gateway secret fails only where the gateway is actually needed."""
    return get_gateway


def notifier() -> Notifier:
    return get_notifier()


def settings() -> Settings:
    return get_settings()
