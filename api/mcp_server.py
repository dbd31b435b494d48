"""MCP server for the Town Connect directory.

Exposes directory lookups as tools. Uses FastMCP (v2) with stdio transport.
"""

from __future__ import annotations

from fastmcp import FastMCP

from api import queries, whatsapp
from api.settings import get_settings
from api.tenants import available_towns, resolve_tenant, with_sources
from pipeline.ingest_sheets import HttpCsvSource
from pipeline.records import BusinessRecord

mcp = FastMCP(
    "Town Connect",
    instructions=(
        "Local business directory for South African towns. Call get_tenant() "
        "to see the available towns, then get_businesses() or search_directory() "
        "for listings in one town."
    ),
)

_feeds: dict[str, queries.DirectoryFeed] = {}


def _feed(town: str | None) -> queries.DirectoryFeed:
    settings = get_settings()
    tenant = resolve_tenant(town or settings.town)
    tenant = with_sources(tenant, settings.business_csv_url, settings.emergency_csv_url)
    if tenant.slug not in _feeds:
        _feeds[tenant.slug] = queries.DirectoryFeed(tenant, HttpCsvSource(timeout=settings.http_timeout))
    return _feeds[tenant.slug]


@mcp.tool()
def get_tenant(town: str | None = None) -> dict:
    """Get a town's configuration (name, contact, pricing, map centre).

    Also lists every town with a predefined configuration.
    """
    tenant = _feed(town).tenant
    return {
        "tenant": tenant.model_dump(exclude={"data"}),
        "available_towns": available_towns(),
    }


@mcp.tool()
def get_sectors() -> list[dict]:
    """The 14 business sectors every town's directory is organised by."""
    return [s.model_dump() for s in _feed(None).tenant.data.sectors]


@mcp.tool()
async def get_businesses(
    town: str | None = None,
    sector: str | None = None,
    limit: int = 50,
) -> list[dict]:
    """Business listings for a town, optionally for one sector id."""
    listings = await _feed(town).refresh()
    records = [item for item in listings if isinstance(item, BusinessRecord)]
    return [r.model_dump() for r in queries.get_businesses(records, sector=sector, limit=limit)]


@mcp.tool()
async def search_directory(keyword: str, town: str | None = None) -> dict:
    """Keyword search (e.g. "plumber") over names, subcategories and tags.

    Returns at most 6 matches plus the reply the WhatsApp bot would send.
    """
    feed = _feed(town)
    listings = await feed.refresh()
    result = whatsapp.answer(keyword, listings, feed.tenant, get_settings().support_phone, source="mcp")
    return {
        "matches": [queries.to_match(m).model_dump() for m in result.matches],
        "reply": result.text,
    }


@mcp.tool()
def get_directory_status(town: str | None = None) -> dict:
    """How many listings were last loaded for a town, and when."""
    return _feed(town).status()


def main():
    mcp.run()


if __name__ == "__main__":
    main()
