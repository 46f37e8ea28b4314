"""PayU hosted checkout: signed form requests and callback hash verification."""

import hashlib
import hmac
import secrets
import time
from typing import Literal

from pydantic import BaseModel, ConfigDict

from storefront.core.config import Settings, get_settings
from storefront.core.exceptions import GatewayConfigurationError
from storefront.core.logging import get_logger
from storefront.core.money import format_amount

log = get_logger(__name__)

PAYU_URLS = {
    "test": "https://test.payu.in/_payment",
    "production": "https://secure.payu.in/_payment",
}

SUCCESS_PATH = "/api/payment/success"
FAILURE_PATH = "/api/payment/failure"

# udf2..udf5 are unused but still take their slots in both hash sequences
UNUSED_UDFS = ("", "", "", "")


class PayUConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant_key: str
    merchant_salt: str
    environment: Literal["test", "production"] = "test"
    callback_base_url: str = "http://localhost:8000"

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PayUConfig":
        s = settings or get_settings()
        missing = [
            name
            for name, value in (("PAYU_MERCHANT_KEY", s.payu_merchant_key), ("PAYU_MERCHANT_SALT", s.payu_merchant_salt))
            if not value
        ]
        if missing:
            log.error("payu_not_configured", missing=missing)
            raise GatewayConfigurationError()
        return cls(
            merchant_key=s.payu_merchant_key,
            merchant_salt=s.payu_merchant_salt,
            environment=s.payu_env,
            callback_base_url=s.public_base_url,
        )


class PaymentRequest(BaseModel):
    txnid: str
    amount: str
    productinfo: str
    firstname: str
    lastname: str = ""
    email: str
    phone: str
    surl: str
    furl: str
    udf1: str  # order id, echoed back on the callback


def _sha512(parts: list[str]) -> str:
    return hashlib.sha512("|".join(parts).encode("utf-8")).hexdigest()


class PayUGateway:
    def __init__(self, config: PayUConfig):
        self.config = config

    @property
    def payment_url(self) -> str:
        return PAYU_URLS[self.config.environment]

    def callback_urls(self) -> tuple[str, str]:
        base = self.config.callback_base_url.rstrip("/")
        return base + SUCCESS_PATH, base + FAILURE_PATH

    @staticmethod
    def generate_transaction_id() -> str:
        """TXN + epoch millis + 8 hex chars: 24 alphanumerics, under PayU's 25-char limit."""
        return f"TXN{int(time.time() * 1000)}{secrets.token_hex(4).upper()}"

    def request_hash(self, req: PaymentRequest) -> str:
        # key|txnid|amount|productinfo|firstname|email|udf1|udf2|udf3|udf4|udf5||||||salt
        return _sha512(
            [
                self.config.merchant_key,
                req.txnid,
                req.amount,
                req.productinfo,
                req.firstname,
                req.email,
                req.udf1,
                *UNUSED_UDFS,
                "", "", "", "", "",
                self.config.merchant_salt,
            ]
        )

    def response_hash(
        self,
        txnid: str,
        amount: str,
        productinfo: str,
        firstname: str,
        email: str,
        status: str,
        udf1: str,
    ) -> str:
        # salt|status||||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key
        return _sha512(
            [
                self.config.merchant_salt,
                status,
                "", "", "", "", "",
                *UNUSED_UDFS,
                udf1,
                email,
                firstname,
                productinfo,
                amount,
                txnid,
                self.config.merchant_key,
            ]
        )

    def prepare_payment_form(self, req: PaymentRequest) -> dict[str, str]:
        """Return every field the browser must post to the gateway, hash included."""
        req = req.model_copy(update={"amount": format_amount(req.amount)})
        return {
            "key": self.config.merchant_key,
            "txnid": req.txnid,
            "amount": req.amount,
            "productinfo": req.productinfo,
            "firstname": req.firstname,
            "lastname": req.lastname,
            "email": req.email,
            "phone": req.phone,
            "surl": req.surl,
            "furl": req.furl,
            "udf1": req.udf1,
            "hash": self.request_hash(req),
        }

    def verify_hash(
        self,
        txnid: str,
        amount: str,
        productinfo: str,
        firstname: str,
        email: str,
        status: str,
        received_hash: str,
        udf1: str,
    ) -> bool:
        """True only if ``received_hash`` is PayU's signature over these fields. Never raises."""
        try:
            fields = (txnid, amount, productinfo, firstname, email, status, received_hash, udf1)
            if not all(isinstance(f, str) for f in fields) or not received_hash:
                return False
            expected = self.response_hash(txnid, amount, productinfo, firstname, email, status, udf1)
            return hmac.compare_digest(expected, received_hash.strip().lower())
        except (TypeError, ValueError, UnicodeError):
            log.warning("payu_hash_verification_error", txnid=txnid)
            return False


def get_gateway() -> PayUGateway:
    """Gateway bound to the process settings; raises GatewayConfigurationError if secrets are missing."""
    return PayUGateway(PayUConfig.from_settings())
