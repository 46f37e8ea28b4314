"""
PayU callback reconciliation.

Per order: pending -> success | failed, once. The verified hash plus the amount
check decide the outcome; PayU's ``status`` field alone never does. Every path
ends in a browser redirect to the client result pages.
"""

from typing import Any, Callable, Mapping
from urllib.parse import urlencode

from pydantic import BaseModel

from storefront.core.exceptions import MalformedCallback, VerificationFailure
from storefront.core.logging import bind_payment_context, get_logger
from storefront.schemas.orders import Order, PaymentStatus
from storefront.schemas.payments import CallbackKind, PayUCallback
from storefront.services.payu import PayUGateway
from storefront.stores.base import OrderStore

log = get_logger(__name__)

SUCCESS_PAGE = "/payment-success"
FAILURE_PAGE = "/payment-failure"

# redirect reason -> tag stored under payu_response["error"]
INVALID_HASH = ("invalid_hash", "hash_verification_failed")
AMOUNT_MISMATCH = ("amount_mismatch", "amount_mismatch")


class ReconcileOutcome(BaseModel):
    redirect_url: str
    order: Order | None = None
    notify: bool = False  # schedule the confirmation email once the response is out


def result_url(client_base_url: str, page: str, **params: str | None) -> str:
    query = urlencode({k: v for k, v in params.items() if v})
    url = client_base_url.rstrip("/") + page
    return f"{url}?{query}" if query else url


def verify_callback(callback: PayUCallback, order: Order, gateway: PayUGateway) -> None:
    """Raise VerificationFailure unless the hash is authentic and the amount is the order total."""
    valid = gateway.verify_hash(
        callback.txnid,
        callback.amount,
        callback.productinfo,
        callback.firstname,
        callback.email,
        callback.status,
        callback.hash,
        callback.order_id,
    )
    if not valid:
        raise VerificationFailure(*INVALID_HASH)
    # A genuine signature over another transaction's amount must not settle this order.
    if callback.amount != order.total:
        raise VerificationFailure(*AMOUNT_MISMATCH)


async def reconcile_callback(
    kind: CallbackKind,
    form: Mapping[str, Any],
    store: OrderStore,
    gateway_factory: Callable[[], PayUGateway],
    client_base_url: str = "",
) -> ReconcileOutcome:
    def failure(error: str | None = None, order: Order | None = None, txnid: str | None = None) -> ReconcileOutcome:
        return ReconcileOutcome(
            redirect_url=result_url(
                client_base_url, FAILURE_PAGE, orderId=order.id if order else None, txnid=txnid, error=error
            ),
            order=order,
        )

    try:
        callback = PayUCallback.parse(kind, form)
    except MalformedCallback as e:
        log.warning("callback_malformed", kind=kind.value, missing=e.missing)
        return failure("invalid_callback")

    bind_payment_context(order_id=callback.order_id, txnid=callback.txnid)
    order = await store.get_order(callback.order_id)
    if not order:
        log.error("callback_order_not_found", kind=kind.value, order_id=callback.order_id, txnid=callback.txnid)
        return failure("order_not_found")

    if order.payment_status.is_terminal:
        return _already_terminal(order, callback, client_base_url)

    verification: VerificationFailure | None = None
    if kind is CallbackKind.FAILURE and not callback.hash:
        # PayU does not always sign failure posts; nothing to verify.
        log.info("failure_callback_unsigned", order_id=order.id, txnid=callback.txnid)
    else:
        try:
            verify_callback(callback, order, gateway_factory())
        except VerificationFailure as e:
            verification = e
            log.error(
                "callback_verification_failed",
                kind=kind.value,
                order_id=order.id,
                txnid=callback.txnid,
                reason=e.reason,
                expected_amount=order.total,
                received_amount=callback.amount,
            )

    payload = dict(callback.raw)
    if verification:
        payload["error"] = verification.stored_tag

    if kind is CallbackKind.SUCCESS and not verification and callback.reports_success:
        updated = await store.finalize_payment(
            order.id, PaymentStatus.SUCCESS, callback.txnid, payload, callback.mode
        )
        if updated is None:
            return await _lost_race(store, order, callback, client_base_url)
        log.info(
            "payment_succeeded",
            order_id=order.id,
            txnid=callback.txnid,
            mihpayid=callback.mihpayid,
            mode=callback.mode,
            amount=callback.amount,
        )
        return ReconcileOutcome(
            redirect_url=result_url(client_base_url, SUCCESS_PAGE, orderId=order.id, txnid=callback.txnid),
            order=updated,
            notify=True,
        )

    updated = await store.finalize_payment(
        order.id, PaymentStatus.FAILED, callback.txnid, payload, callback.mode
    )
    if updated is None:
        return await _lost_race(store, order, callback, client_base_url)
    log.info(
        "payment_failed",
        kind=kind.value,
        order_id=order.id,
        txnid=callback.txnid,
        gateway_status=callback.status,
        reason=verification.reason if verification else None,
    )
    # On the failure URL the hash check is diagnostic only; the redirect carries no reason.
    error = verification.reason if verification and kind is CallbackKind.SUCCESS else None
    return failure(error, updated, callback.txnid)


def _already_terminal(order: Order, callback: PayUCallback, client_base_url: str) -> ReconcileOutcome:
    log.warning(
        "callback_for_terminal_order",
        kind=callback.kind.value,
        order_id=order.id,
        stored_status=order.payment_status.value,
        stored_txnid=order.transaction_id,
        txnid=callback.txnid,
        gateway_status=callback.status,
    )
    page = SUCCESS_PAGE if order.payment_status is PaymentStatus.SUCCESS else FAILURE_PAGE
    return ReconcileOutcome(
        redirect_url=result_url(client_base_url, page, orderId=order.id, txnid=order.transaction_id),
        order=order,
    )


async def _lost_race(
    store: OrderStore, order: Order, callback: PayUCallback, client_base_url: str
) -> ReconcileOutcome:
    """Another callback finalized the order between our read and our compare-and-set."""
    current = await store.get_order(order.id) or order
    return _already_terminal(current, callback, client_base_url)
