"""WhatsApp directory bot: keyword search replies over the Meta Cloud API."""

from __future__ import annotations

import re
from dataclasses import dataclass

import httpx
from loguru import logger

from api.models import TenantConfig
from api.queries import Listing, search_listings
from pipeline.records import BusinessRecord, EmergencyService

GRAPH_URL = "https://graph.facebook.com/v20.0"

_NON_DIGIT = re.compile(r"\D")


# ── Phone formatting ──


def _local_with_dashes(digits: str) -> str:
    # 014-755-3839 / 0821-555-0101
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    if len(digits) == 11:
        return f"{digits[:4]}-{digits[4:7]}-{digits[7:]}"
    return digits


def _format_single_phone(raw: str) -> str:
    raw = raw.strip()
    if not raw:
        return ""
    digits = _NON_DIGIT.sub("", raw)

    if len(digits) <= 6:  # short codes: 112, 10111, 10177
        return raw
    if digits.startswith("08") and len(digits) == 10:  # toll-free / share-call
        return f"{digits[:4]}-{digits[4:7]}-{digits[7:]}"
    if digits.startswith("27") and len(digits) >= 11:
        return _local_with_dashes("0" + digits[2:])
    if digits.startswith("0") and len(digits) >= 10:
        return _local_with_dashes(digits)
    return raw


def format_phone(value: str) -> str:
    """South African display format; several numbers may be separated by '/'."""
    raw = (value or "").strip()
    if not raw:
        return ""
    if "/" in raw:
        parts = [_format_single_phone(p) for p in raw.split("/")]
        return "  •  ".join(p for p in parts if p)
    return _format_single_phone(raw)


def wa_link(number: str) -> str:
    """wa.me link for a local (0XX) or international (27XX) number, '' if unusable."""
    digits = _NON_DIGIT.sub("", number or "")
    if digits.startswith("0"):
        digits = "27" + digits[1:]
    if len(digits) < 11:
        return ""
    return f"wa.me/{digits}"


# ── Replies ──


def _format_listing(listing: Listing) -> str:
    if isinstance(listing, BusinessRecord):
        lines = [f"*{listing.name}*"]
        phone, whatsapp, address = listing.phone, listing.whatsapp or listing.phone, listing.address
    else:
        lines = [f"\U0001f6a8 *{listing.service_name}*"]
        phone, whatsapp, address = (
            listing.primary_phone, listing.whatsapp or listing.primary_phone, listing.coverage_area
        )
    if phone:
        lines.append(f"\U0001f4de {format_phone(phone)}")
    link = wa_link(whatsapp)
    if link:
        lines.append(f"\U0001f4ac {link}")
    if address:
        lines.append(f"\U0001f4cd {address}")
    return "\n".join(lines)


def no_results_reply(keyword: str, tenant: TenantConfig, support_phone: str) -> str:
    town = tenant.town.name
    phone = tenant.contact.phone or support_phone
    return (
        f"No {keyword} listed in {town} yet.\n\n"
        "Know one? Help the community:\n"
        f"\U0001f4dd Add them: {tenant.site_domain}/#add-business\n"
        f"\U0001f4ac Or WhatsApp us: {phone}"
    )


def format_reply(keyword: str, matches: list[Listing], tenant: TenantConfig, support_phone: str) -> str:
    if not matches:
        return no_results_reply(keyword, tenant, support_phone)
    return "\n\n".join(_format_listing(m) for m in matches)


def error_reply(tenant: TenantConfig, support_phone: str) -> str:
    return f"Sorry, something went wrong. WhatsApp us directly: {tenant.contact.phone or support_phone}"


@dataclass
class BotAnswer:
    text: str
    matches: list[Listing]


def answer(keyword: str, listings: list[Listing], tenant: TenantConfig, support_phone: str, source: str) -> BotAnswer:
    """Search and format; logs the query for analytics."""
    matches = search_listings(listings, keyword)
    logger.info(
        "search town={} source={} term={!r} results={} shown={!r}",
        tenant.town.name, source, keyword, len(matches),
        ", ".join(_listing_name(m) for m in matches),
    )
    return BotAnswer(text=format_reply(keyword.strip(), matches, tenant, support_phone), matches=matches)


def _listing_name(listing: Listing) -> str:
    return listing.name if isinstance(listing, BusinessRecord) else listing.service_name


def top_location(matches: list[Listing]) -> dict | None:
    """Location pin for the first match that has coordinates."""
    if not matches:
        return None
    top = matches[0]
    if isinstance(top, EmergencyService) or top.lat is None or top.lng is None:
        return None
    return {
        "latitude": str(top.lat),
        "longitude": str(top.lng),
        "name": top.name,
        "address": top.address,
    }


# ── Meta webhook ──


def verify_webhook(params: dict, verify_token: str | None) -> tuple[bool, str] | None:
    """Meta subscription handshake. None when `params` isn't a verification request."""
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token")
    challenge = params.get("hub.challenge")
    if not (mode and token and challenge):
        return None
    if verify_token and token == verify_token:
        return True, challenge
    return False, "Forbidden"


def extract_message(payload: dict) -> tuple[str, str] | None:
    """(sender, text) of the first inbound text message; None for status events etc."""
    try:
        msg = payload["entry"][0]["changes"][0]["value"]["messages"][0]
    except (KeyError, IndexError, TypeError):
        return None
    sender = msg.get("from")
    text = (msg.get("text") or {}).get("body")
    if not sender or not text:
        return None
    return sender, text


class WhatsAppClient:
    """Sends messages through the WhatsApp Cloud API."""

    def __init__(self, token: str, phone_number_id: str, transport: httpx.AsyncBaseTransport | None = None):
        self.token = token
        self.phone_number_id = phone_number_id
        self.transport = transport

    async def _send(self, payload: dict) -> int:
        url = f"{GRAPH_URL}/{self.phone_number_id}/messages"
        async with httpx.AsyncClient(timeout=30, transport=self.transport) as client:
            r = await client.post(
                url,
                json={"messaging_product": "whatsapp", **payload},
                headers={"Authorization": f"Bearer {self.token}"},
            )
        logger.info("meta send {} -> {}", payload["type"], r.status_code)
        if r.status_code >= 400:
            logger.warning("meta send body: {}", r.text)
        return r.status_code

    async def send_text(self, to: str, body: str) -> int:
        return await self._send({"to": to, "type": "text", "text": {"body": body}})

    async def send_location(self, to: str, location: dict) -> int:
        return await self._send({"to": to, "type": "location", "location": location})
