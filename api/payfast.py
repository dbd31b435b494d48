"""PayFast ITN (instant transaction notification) handling.

Nothing in a notification is trusted until its signature checks out. Only
COMPLETE payments reach the payment log.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from datetime import datetime, timezone
from urllib.parse import quote

import httpx
from loguru import logger

from api.models import PaymentRecord

# characters JavaScript's encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE).replace("%20", "+")


def generate_signature(data: dict[str, str], passphrase: str = "") -> str:
    """MD5 over the sorted, encoded key=value pairs (+ passphrase)."""
    pairs = [
        f"{key}={_encode(data[key])}"
        for key in sorted(data)
        if key != "signature" and data[key] not in (None, "")
    ]
    param_string = "&".join(pairs)
    if passphrase:
        param_string += f"&passphrase={_encode(passphrase)}"
    return hashlib.md5(param_string.encode("utf-8")).hexdigest()


def validate_signature(data: dict[str, str], passphrase: str = "") -> bool:
    signature = data.get("signature")
    if not signature:
        return False
    return hmac.compare_digest(signature, generate_signature(data, passphrase))


def build_payment_record(data: dict[str, str]) -> PaymentRecord:
    name = f"{data.get('name_first', '')} {data.get('name_last', '')}".strip()
    return PaymentRecord(
        payment_id=data.get("m_payment_id") or f"PF-{int(time.time() * 1000)}",
        pf_payment_id=data.get("pf_payment_id", ""),
        timestamp=datetime.now(timezone.utc).isoformat(),
        payment_status=data.get("payment_status", ""),
        amount=data.get("amount_gross") or "0",
        business_name=data.get("custom_str1") or data.get("item_name") or "Unknown",
        plan=data.get("custom_str2") or data.get("item_description") or "Unknown",
        town=data.get("custom_str3") or "Vaalwater",
        contact_email=data.get("email_address", ""),
        contact_phone=data.get("custom_str4", ""),
        name=name,
    )


class PaymentLog:
    """Appends payment rows to the spreadsheet-backed log endpoint.

    `url` is a web app bound to the payments sheet that appends the posted
    row. Without one, payments are only written to the service log.
    """

    COLUMNS = (
        "payment_id", "pf_payment_id", "timestamp", "payment_status", "amount",
        "business_name", "plan", "town", "contact_email", "contact_phone", "name",
    )

    def __init__(self, url: str | None, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def row(self, record: PaymentRecord) -> list[str]:
        data = record.model_dump()
        return [str(data[c]) for c in self.COLUMNS]

    async def append(self, record: PaymentRecord) -> None:
        logger.info("payment received: {}", record.model_dump_json())
        if not self.url:
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, transport=self.transport) as client:
            r = await client.post(self.url, json={"values": [self.row(record)]})
            r.raise_for_status()
        logger.info("payment {} appended to log", record.payment_id)
