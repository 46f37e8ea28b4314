"""PayU request/response hashing."""

import hashlib
import re

import pytest

from storefront.core.config import Settings
from storefront.core.exceptions import GatewayConfigurationError
from storefront.services.payu import PaymentRequest, PayUConfig, PayUGateway

SIGNED_FIELDS = ["txnid", "amount", "productinfo", "firstname", "email", "status", "udf1"]


def _request(**overrides) -> PaymentRequest:
    data = dict(
        txnid="TXN1700000000000ABCD1234",
        amount="200.00",
        productinfo="Order #1234abcd",
        firstname="Asha",
        lastname="Rao",
        email="asha@example.com",
        phone="9999999999",
        surl="http://api.test/api/payment/success",
        furl="http://api.test/api/payment/failure",
        udf1="1234abcd-0000-0000-0000-000000000000",
    )
    data.update(overrides)
    return PaymentRequest(**data)


def _response_fields(status: str = "success") -> dict:
    return {
        "txnid": "TXN1700000000000ABCD1234",
        "amount": "200.00",
        "productinfo": "Order #1234abcd",
        "firstname": "Asha",
        "email": "asha@example.com",
        "status": status,
        "udf1": "1234abcd-0000-0000-0000-000000000000",
    }


def _verify(gateway: PayUGateway, fields: dict, received_hash: str) -> bool:
    return gateway.verify_hash(
        fields["txnid"],
        fields["amount"],
        fields["productinfo"],
        fields["firstname"],
        fields["email"],
        fields["status"],
        received_hash,
        fields["udf1"],
    )


def test_request_hash_follows_payu_sequence(gateway):
    req = _request()
    raw = "testkey|TXN1700000000000ABCD1234|200.00|Order #1234abcd|Asha|asha@example.com|1234abcd-0000-0000-0000-000000000000||||||||||testsalt"
    assert gateway.request_hash(req) == hashlib.sha512(raw.encode()).hexdigest()


def test_response_hash_is_reverse_sequence(gateway):
    f = _response_fields()
    raw = "testsalt|success||||||||||1234abcd-0000-0000-0000-000000000000|asha@example.com|Asha|Order #1234abcd|200.00|TXN1700000000000ABCD1234|testkey"
    expected = hashlib.sha512(raw.encode()).hexdigest()
    assert gateway.response_hash(*(f[k] for k in SIGNED_FIELDS)) == expected
    assert _verify(gateway, f, expected)


def test_prepare_payment_form_contains_signed_fields(gateway):
    form = gateway.prepare_payment_form(_request(amount="200"))
    assert form["key"] == "testkey"
    assert form["amount"] == "200.00"
    assert form["udf1"] == "1234abcd-0000-0000-0000-000000000000"
    assert form["hash"] == gateway.request_hash(_request(amount="200.00"))
    assert re.fullmatch(r"[0-9a-f]{128}", form["hash"])
    assert set(form) == {
        "key", "txnid", "amount", "productinfo", "firstname", "lastname",
        "email", "phone", "surl", "furl", "udf1", "hash",
    }


def test_form_fields_verify_as_authentic_reply(gateway):
    form = gateway.prepare_payment_form(_request())
    # PayU echoes the request fields and adds status; its reply hash must validate
    reply = {k: form[k] for k in ("txnid", "amount", "productinfo", "firstname", "email", "udf1")}
    reply["status"] = "success"
    signature = gateway.response_hash(*(reply[k] for k in SIGNED_FIELDS))
    assert _verify(gateway, reply, signature)


def test_verify_hash_is_deterministic(gateway):
    f = _response_fields()
    signature = gateway.response_hash(*(f[k] for k in SIGNED_FIELDS))
    assert all(_verify(gateway, f, signature) for _ in range(5))
    assert _verify(gateway, f, signature.upper())


@pytest.mark.parametrize("field", SIGNED_FIELDS)
def test_single_character_mutation_fails(gateway, field):
    f = _response_fields()
    signature = gateway.response_hash(*(f[k] for k in SIGNED_FIELDS))
    tampered = dict(f)
    tampered[field] = f[field][:-1] + ("X" if f[field][-1] != "X" else "Y")
    assert not _verify(gateway, tampered, signature)


def test_mutated_hash_fails(gateway):
    f = _response_fields()
    signature = gateway.response_hash(*(f[k] for k in SIGNED_FIELDS))
    flipped = ("0" if signature[0] != "0" else "1") + signature[1:]
    assert not _verify(gateway, f, flipped)


def test_other_salt_fails(gateway):
    f = _response_fields()
    other = PayUGateway(PayUConfig(merchant_key="testkey", merchant_salt="othersalt"))
    assert not _verify(gateway, f, other.response_hash(*(f[k] for k in SIGNED_FIELDS)))


@pytest.mark.parametrize("bad_hash", ["", "   ", "not-a-hash", "é" * 128, None, 12345])
def test_malformed_hash_returns_false(gateway, bad_hash):
    assert _verify(gateway, _response_fields(), bad_hash) is False


def test_non_string_field_returns_false(gateway):
    f = _response_fields()
    signature = gateway.response_hash(*(f[k] for k in SIGNED_FIELDS))
    f["amount"] = None
    assert _verify(gateway, f, signature) is False


def test_transaction_ids_are_unique_and_payu_safe():
    ids = {PayUGateway.generate_transaction_id() for _ in range(500)}
    assert len(ids) == 500
    for txnid in ids:
        assert re.fullmatch(r"TXN[0-9A-F]{21}", txnid)
        assert len(txnid) <= 25


def test_payment_url_follows_environment():
    test_gw = PayUGateway(PayUConfig(merchant_key="k", merchant_salt="s", environment="test"))
    live_gw = PayUGateway(PayUConfig(merchant_key="k", merchant_salt="s", environment="production"))
    assert test_gw.payment_url == "https://test.payu.in/_payment"
    assert live_gw.payment_url == "https://secure.payu.in/_payment"


def test_callback_urls_use_configured_base():
    gw = PayUGateway(PayUConfig(merchant_key="k", merchant_salt="s", callback_base_url="https://shop.example/"))
    assert gw.callback_urls() == (
        "https://shop.example/api/payment/success",
        "https://shop.example/api/payment/failure",
    )


def test_config_requires_key_and_salt():
    with pytest.raises(GatewayConfigurationError):
        PayUConfig.from_settings(Settings(PAYU_MERCHANT_KEY="k", PAYU_MERCHANT_SALT=""))
    with pytest.raises(GatewayConfigurationError):
        PayUConfig.from_settings(Settings(PAYU_MERCHANT_KEY="", PAYU_MERCHANT_SALT="s"))
    cfg = PayUConfig.from_settings(
        Settings(PAYU_MERCHANT_KEY="k", PAYU_MERCHANT_SALT="s", PAYU_ENV="production", PUBLIC_BASE_URL="https://x")
    )
    assert cfg.environment == "production"
    assert cfg.callback_base_url == "https://x"
