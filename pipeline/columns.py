"""Header alias tables → column indices.

Each town's sheets are kept by hand, so column names drift ("sectorId" in one
tab, "sector_id" in another). Every logical field lists the header spellings
we accept, first match wins.
"""

from __future__ import annotations

NOT_FOUND = -1

# logical field → accepted header names (lowercase, as parse_table emits them)
BUSINESS_COLUMNS: dict[str, tuple[str, ...]] = {
    "id": ("id", "business_id"),
    "name": ("name", "business_name", "service_name"),
    "sector": ("sectorid", "sector_id", "sector"),
    "subcategory": ("subcategory", "category", "type"),
    "description": ("description", "desc", "notes"),
    "phone": ("phone", "primary_phone", "telephone"),
    "whatsapp": ("whatsapp", "wa"),
    "email": ("email", "contact_email"),
    "website": ("website", "url", "web"),
    "facebook": ("facebook", "fb"),
    "instagram": ("instagram", "ig"),
    "address": ("address", "location", "area", "coverage_area"),
    "town": ("town", "city", "region"),
    "lat": ("lat", "latitude"),
    "lng": ("lng", "lon", "long", "longitude"),
    "tier": ("tier", "plan"),
    "featured": ("isfeatured", "is_featured", "featured"),
    "tags": ("tags", "keywords"),
    "image": ("imageurl", "image_url", "image"),
    "status": ("status",),
}

EMERGENCY_COLUMNS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "town": ("town", "city"),
    "province": ("province",),
    "category": ("category", "type"),
    "name": ("service_name", "name"),
    "primary_phone": ("primary_phone", "phone"),
    "secondary_phone": ("secondary_phone", "alt_phone"),
    "whatsapp": ("whatsapp", "wa"),
    "ussd": ("ussd",),
    "email": ("email",),
    "hours": ("hours", "operating_hours"),
    "coverage_area": ("coverage_area", "area", "address"),
    "status": ("status",),
}


def find_column(headers: list[str], *aliases: str) -> int:
    """Index of the first alias present in `headers`, or NOT_FOUND."""
    for alias in aliases:
        alias = alias.lower()
        if alias in headers:
            return headers.index(alias)
    return NOT_FOUND


def resolve_columns(headers: list[str], aliases: dict[str, tuple[str, ...]]) -> dict[str, int]:
    """Resolve every logical field of an alias table against one header row."""
    return {name: find_column(headers, *names) for name, names in aliases.items()}


def cell(row: list[str], idx: int) -> str:
    """Cell value, or "" when the column is missing or the row is short."""
    if idx == NOT_FOUND or idx >= len(row):
        return ""
    return row[idx]
