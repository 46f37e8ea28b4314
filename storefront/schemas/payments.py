"""Typed view of the form PayU posts back to the success/failure URLs."""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from storefront.core.exceptions import MalformedCallback

PAYU_SUCCESS_STATUS = "success"


class CallbackKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class PayUCallback(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: CallbackKind
    order_id: str  # echoed udf1
    txnid: str
    hash: str = ""
    amount: str = ""
    productinfo: str = ""
    firstname: str = ""
    email: str = ""
    status: str = ""
    mihpayid: str | None = None
    mode: str | None = None
    # Everything PayU posted, kept for audit; business logic reads only the fields above.
    raw: dict[str, str]

    @property
    def reports_success(self) -> bool:
        return self.status == PAYU_SUCCESS_STATUS

    @classmethod
    def parse(cls, kind: CallbackKind, form: Mapping[str, Any]) -> "PayUCallback":
        """Build from the posted form; raise MalformedCallback if it can't be correlated."""
        raw = {str(k): "" if v is None else str(v) for k, v in form.items()}
        required = ["udf1", "txnid"]
        if kind is CallbackKind.SUCCESS:
            required.append("hash")
        missing = [f for f in required if not raw.get(f, "").strip()]
        if missing:
            raise MalformedCallback(missing)
        return cls(
            kind=kind,
            order_id=raw["udf1"].strip(),
            txnid=raw["txnid"].strip(),
            hash=raw.get("hash", "").strip(),
            amount=raw.get("amount", ""),
            productinfo=raw.get("productinfo", ""),
            firstname=raw.get("firstname", ""),
            email=raw.get("email", ""),
            status=raw.get("status", ""),
            mihpayid=raw.get("mihpayid") or None,
            mode=raw.get("mode") or None,
            raw=raw,
        )
