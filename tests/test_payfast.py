"""PayFast signatures and payment records."""

import asyncio
import hashlib
import json

import httpx
import pytest

from api.payfast import PaymentLog, build_payment_record, generate_signature, validate_signature

ITN = {
    "m_payment_id": "VC-1042",
    "pf_payment_id": "1089250",
    "payment_status": "COMPLETE",
    "item_name": "Joe's Garage Premium",
    "amount_gross": "349.00",
    "email_address": "joe@example.com",
    "custom_str1": "Joe's Garage",
    "custom_str2": "premium",
    "custom_str3": "Vaalwater",
    "name_first": "Joe",
    "name_last": "",
    "merchant_id": "10000100",
}


def _md5(s: str) -> str:
    return hashlib.md5(s.encode()).hexdigest()


def test_signature_sorts_and_encodes():
    data = {
        "merchant_id": "10000100",
        "amount_gross": "200.00",
        "item_name": "Joe's Garage Premium",
        "email_address": "a@b.co",
        "payment_status": "COMPLETE",
        "name_last": "",
        "signature": "ignored",
    }
    expected = _md5(
        "amount_gross=200.00&email_address=a%40b.co&item_name=Joe's+Garage+Premium"
        "&merchant_id=10000100&payment_status=COMPLETE"
    )
    assert generate_signature(data) == expected


def test_signature_appends_passphrase():
    data = {"amount_gross": "5.00"}
    assert generate_signature(data, "secret phrase") == _md5("amount_gross=5.00&passphrase=secret+phrase")


def test_validate_round_trip():
    signed = {**ITN, "signature": generate_signature(ITN, "jt7NOE43FZPn")}
    assert validate_signature(signed, "jt7NOE43FZPn")
    assert not validate_signature(signed, "wrong")
    assert not validate_signature({**signed, "amount_gross": "1.00"}, "jt7NOE43FZPn")


def test_missing_signature_is_invalid():
    assert not validate_signature(ITN, "")


def test_payment_record_fields():
    record = build_payment_record(ITN)
    assert record.payment_id == "VC-1042"
    assert record.business_name == "Joe's Garage"
    assert record.plan == "premium"
    assert record.amount == "349.00"
    assert record.name == "Joe"
    assert record.contact_phone == ""


def test_payment_record_fallbacks():
    record = build_payment_record({"item_name": "Listing", "payment_status": "COMPLETE"})
    assert record.payment_id.startswith("PF-")
    assert record.business_name == "Listing"
    assert record.plan == "Unknown"
    assert record.town == "Vaalwater"
    assert record.amount == "0"


def test_payment_log_posts_row():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True})

    log = PaymentLog("https://sheets.example/append", transport=httpx.MockTransport(handler))
    asyncio.run(log.append(build_payment_record(ITN)))

    (row,) = seen[0]["values"]
    assert row[0] == "VC-1042"
    assert row[5] == "Joe's Garage"
    assert len(row) == len(PaymentLog.COLUMNS)


def test_payment_log_surfaces_http_errors():
    log = PaymentLog(
        "https://sheets.example/append",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(log.append(build_payment_record(ITN)))


def test_payment_log_without_url_does_nothing():
    asyncio.run(PaymentLog(None).append(build_payment_record(ITN)))
