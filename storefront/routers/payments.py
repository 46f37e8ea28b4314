from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse

from storefront.core.config import Settings
from storefront.core.logging import get_logger
from storefront.deps import catalog, gateway_factory, notifier, order_store, settings
from storefront.schemas.orders import CheckoutRequest, PaymentHandoff
from storefront.schemas.payments import CallbackKind
from storefront.services import checkout as checkout_service
from storefront.services import reconciler
from storefront.services.notifications import Notifier
from storefront.services.payu import PayUGateway
from storefront.stores.base import OrderStore, ProductCatalog

router = APIRouter()
log = get_logger(__name__)


@router.post("/initiate", response_model=PaymentHandoff)
async def payment_initiate(
    body: CheckoutRequest,
    store: OrderStore = Depends(order_store),
    products: ProductCatalog = Depends(catalog),
    make_gateway: Callable[[], PayUGateway] = Depends(gateway_factory),
):
    """Create a pending order; the client auto-submits formData to paymentUrl."""
    return await checkout_service.initiate_payment(body, store, products, make_gateway)


async def _handle_callback(
    kind: CallbackKind,
    request: Request,
    background: BackgroundTasks,
    store: OrderStore,
    make_gateway: Callable[[], PayUGateway],
    mailer: Notifier,
    cfg: Settings,
) -> RedirectResponse:
    # Reached by the customer's browser via PayU's redirect: always answer with a redirect.
    try:
        form = await request.form()
        outcome = await reconciler.reconcile_callback(kind, form, store, make_gateway, cfg.client_base_url)
    except Exception:
        log.exception("callback_processing_error", kind=kind.value)
        url = reconciler.result_url(cfg.client_base_url, reconciler.FAILURE_PAGE, error="processing_error")
        return RedirectResponse(url, status_code=302)
    if outcome.notify and outcome.order:
        background.add_task(mailer.payment_succeeded, outcome.order.id)
    return RedirectResponse(outcome.redirect_url, status_code=302)


@router.post("/success")
async def payment_success(
    request: Request,
    background: BackgroundTasks,
    store: OrderStore = Depends(order_store),
    make_gateway: Callable[[], PayUGateway] = Depends(gateway_factory),
    mailer: Notifier = Depends(notifier),
    cfg: Settings = Depends(settings),
):
    """PayU surl."""
    return await _handle_callback(CallbackKind.SUCCESS, request, background, store, make_gateway, mailer, cfg)


@router.post("/failure")
async def payment_failure(
    request: Request,
    background: BackgroundTasks,
    store: OrderStore = Depends(order_store),
    make_gateway: Callable[[], PayUGateway] = Depends(gateway_factory),
    mailer: Notifier = Depends(notifier),
    cfg: Settings = Depends(settings),
):
    """PayU furl. Verification still runs, for the log."""
    return await _handle_callback(CallbackKind.FAILURE, request, background, store, make_gateway, mailer, cfg)
