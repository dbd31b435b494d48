"""Shared query layer. FastAPI, the WhatsApp bot and MCP all call these.

Every load fetches fresh CSV from the tenant's sources and returns a newly
built list; nothing is shared between requests. `DirectoryFeed` is the one
long-lived holder, and it only keeps the newest response.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

from loguru import logger

from api.models import SearchMatch, TenantConfig
from pipeline.ingest_sheets import CsvSource
from pipeline.records import (
    BusinessRecord,
    EmergencyService,
    parse_businesses_csv,
    parse_emergency_csv,
)

MAX_SEARCH_RESULTS = 6

Listing = Union[BusinessRecord, EmergencyService]


async def load_businesses(tenant: TenantConfig, source: CsvSource) -> list[BusinessRecord]:
    """Fetch the business sheet and narrow it to the tenant's town."""
    text = await source.fetch(tenant.sources.businesses)
    records = parse_businesses_csv(text, town=tenant.town.name)
    logger.info("{}: {} businesses loaded", tenant.slug, len(records))
    return records


async def load_emergency_services(tenant: TenantConfig, source: CsvSource) -> list[EmergencyService]:
    if not tenant.sources.emergency:
        return []
    text = await source.fetch(tenant.sources.emergency)
    return parse_emergency_csv(text, town=tenant.town.name)


async def load_listings(tenant: TenantConfig, source: CsvSource) -> list[Listing]:
    """Businesses followed by emergency services, both sheets fetched concurrently."""
    businesses, emergency = await asyncio.gather(
        load_businesses(tenant, source),
        load_emergency_services(tenant, source),
    )
    return [*businesses, *emergency]


def get_businesses(
    records: list[BusinessRecord],
    sector: str | None = None,
    featured: bool | None = None,
    q: str | None = None,
    limit: int = 100,
) -> list[BusinessRecord]:
    """Filter already town-scoped records; featured listings sort first."""
    result = records
    if sector:
        result = [r for r in result if r.sector_id == sector]
    if featured is not None:
        result = [r for r in result if r.is_featured == featured]
    if q:
        result = [r for r in result if _matches(r, q.strip().lower())]
    result = sorted(result, key=lambda r: not r.is_featured)
    return result[: min(limit, 500)]


def get_business(records: list[BusinessRecord], business_id: str) -> BusinessRecord | None:
    return next((r for r in records if r.id == business_id), None)


def _is_active(listing: Listing) -> bool:
    status = listing.status.strip().lower()
    return not status or status == "active"


def _matches(listing: Listing, keyword: str) -> bool:
    if isinstance(listing, BusinessRecord):
        haystacks = [listing.subcategory, listing.name, ",".join(listing.tags)]
    else:
        haystacks = [listing.category, listing.service_name]
    return any(keyword in h.lower() for h in haystacks)


def search_listings(listings: list[Listing], keyword: str, limit: int = MAX_SEARCH_RESULTS) -> list[Listing]:
    """Case-insensitive keyword match on subcategory, name and tags; active listings only."""
    kw = keyword.strip().lower()
    if not kw:
        return []
    hits = (item for item in listings if _is_active(item) and _matches(item, kw))
    return list(itertools.islice(hits, min(limit, MAX_SEARCH_RESULTS)))


def to_match(listing: Listing) -> SearchMatch:
    if isinstance(listing, BusinessRecord):
        return SearchMatch(
            kind="business",
            id=listing.id,
            name=listing.name,
            category=listing.subcategory,
            phone=listing.phone,
            whatsapp=listing.whatsapp or listing.phone,
            address=listing.address,
            lat=listing.lat,
            lng=listing.lng,
        )
    return SearchMatch(
        kind="emergency",
        id=listing.id,
        name=listing.service_name,
        category=listing.category,
        phone=listing.primary_phone,
        whatsapp=listing.whatsapp or listing.primary_phone,
        address=listing.coverage_area,
    )


# ── Out-of-order response guard ──


class LatestResponseGuard:
    """Hands out increasing tokens; only the newest token may commit."""

    def __init__(self) -> None:
        self._issued = 0

    def issue(self) -> int:
        self._issued += 1
        return self._issued

    def is_current(self, token: int) -> bool:
        return token == self._issued


@dataclass
class DirectorySnapshot:
    listings: list[Listing] = field(default_factory=list)
    loaded_at: datetime | None = None
    token: int = 0


class DirectoryFeed:
    """Latest directory listings for one tenant.

    Overlapping refreshes may resolve in any order; a response is kept only
    if no newer refresh was started after it, so a slow stale fetch can't
    overwrite a fresher one.
    """

    def __init__(self, tenant: TenantConfig, source: CsvSource):
        self.tenant = tenant
        self.source = source
        self.snapshot = DirectorySnapshot()
        self._guard = LatestResponseGuard()

    async def refresh(self) -> list[Listing]:
        token = self._guard.issue()
        listings = await load_listings(self.tenant, self.source)
        if self._guard.is_current(token):
            self.snapshot = DirectorySnapshot(
                listings=listings,
                loaded_at=datetime.now(timezone.utc),
                token=token,
            )
        else:
            logger.debug("{}: dropped stale response (token {})", self.tenant.slug, token)
        return listings

    def status(self) -> dict:
        snap = self.snapshot
        return {
            "town": self.tenant.town.name,
            "listings": len(snap.listings),
            "loaded_at": snap.loaded_at.isoformat() if snap.loaded_at else None,
        }
