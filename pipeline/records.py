"""Parsed CSV tables → typed directory records, scoped to a town."""

from __future__ import annotations

import math
from typing import Iterable, Literal, TypeVar

from pydantic import BaseModel, Field

from pipeline.columns import BUSINESS_COLUMNS, EMERGENCY_COLUMNS, cell, resolve_columns
from pipeline.csv_parse import CsvTable, parse_table
from pipeline.sector_map import classify_sector

UNNAMED_BUSINESS = "Unnamed Business"

Tier = Literal["micro", "standard", "premium", "hospitality"]
TIERS: tuple[str, ...] = ("micro", "standard", "premium", "hospitality")
DEFAULT_TIER = "standard"


class BusinessRecord(BaseModel):
    id: str
    name: str
    sector_id: str
    subcategory: str = ""
    description: str = ""
    phone: str = ""
    whatsapp: str = ""
    email: str = ""
    website: str = ""
    facebook: str = ""
    instagram: str = ""
    address: str = ""
    town: str = ""  # empty = listed in every town
    lat: float | None = None
    lng: float | None = None
    image_url: str = ""
    tier: Tier = DEFAULT_TIER
    is_featured: bool = False
    tags: list[str] = Field(default_factory=list)
    status: str = ""


class EmergencyService(BaseModel):
    id: str
    town: str = ""
    province: str = ""
    category: str = ""
    service_name: str
    primary_phone: str = ""
    secondary_phone: str = ""
    whatsapp: str = ""
    ussd: str = ""
    email: str = ""
    hours: str = ""
    coverage_area: str = ""
    status: str = ""


def _parse_coord(text: str) -> float | None:
    """Finite float or None. 0.0 is a real coordinate, never a stand-in for missing."""
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_tier(text: str) -> str:
    tier = text.strip().lower()
    return tier if tier in TIERS else DEFAULT_TIER


def _parse_tags(text: str) -> list[str]:
    return [t.strip() for t in text.split(",") if t.strip()]


def _is_usable_name(name: str) -> bool:
    return bool(name) and name != UNNAMED_BUSINESS


def build_businesses(table: CsvTable) -> list[BusinessRecord]:
    """One BusinessRecord per data row that carries a usable name.

    Every other field may be blank. Ids fall back to csv-<row index>, which is
    unique within one parse but not stable across re-sorted sheets.
    """
    col = resolve_columns(table.headers, BUSINESS_COLUMNS)
    records = []

    for row_index, row in enumerate(table.rows):
        name = cell(row, col["name"])
        if not _is_usable_name(name):
            continue

        subcategory = cell(row, col["subcategory"])
        records.append(
            BusinessRecord(
                id=cell(row, col["id"]) or f"csv-{row_index}",
                name=name,
                sector_id=classify_sector(cell(row, col["sector"]), subcategory),
                subcategory=subcategory,
                description=cell(row, col["description"]),
                phone=cell(row, col["phone"]),
                whatsapp=cell(row, col["whatsapp"]),
                email=cell(row, col["email"]),
                website=cell(row, col["website"]),
                facebook=cell(row, col["facebook"]),
                instagram=cell(row, col["instagram"]),
                address=cell(row, col["address"]),
                town=cell(row, col["town"]),
                lat=_parse_coord(cell(row, col["lat"])),
                lng=_parse_coord(cell(row, col["lng"])),
                image_url=cell(row, col["image"]),
                tier=_parse_tier(cell(row, col["tier"])),
                is_featured=cell(row, col["featured"]).strip().lower() == "true",
                tags=_parse_tags(cell(row, col["tags"])),
                status=cell(row, col["status"]),
            )
        )

    return records


def build_emergency_services(table: CsvTable) -> list[EmergencyService]:
    """Emergency-services tab → records. Rows without a service name are dropped."""
    col = resolve_columns(table.headers, EMERGENCY_COLUMNS)
    services = []

    for row_index, row in enumerate(table.rows):
        name = cell(row, col["name"])
        if not name:
            continue
        services.append(
            EmergencyService(
                id=cell(row, col["id"]) or f"csv-{row_index}",
                town=cell(row, col["town"]),
                province=cell(row, col["province"]),
                category=cell(row, col["category"]),
                service_name=name,
                primary_phone=cell(row, col["primary_phone"]),
                secondary_phone=cell(row, col["secondary_phone"]),
                whatsapp=cell(row, col["whatsapp"]),
                ussd=cell(row, col["ussd"]),
                email=cell(row, col["email"]),
                hours=cell(row, col["hours"]),
                coverage_area=cell(row, col["coverage_area"]),
                status=cell(row, col["status"]),
            )
        )

    return services


R = TypeVar("R", BusinessRecord, EmergencyService)


def filter_by_town(records: Iterable[R], town: str) -> list[R]:
    """Keep records for `town` (case-insensitive) plus unscoped ones (empty town)."""
    wanted = town.strip().lower()
    return [r for r in records if not r.town.strip() or r.town.strip().lower() == wanted]


def parse_businesses_csv(text: str, town: str | None = None) -> list[BusinessRecord]:
    """CSV text → business records, optionally narrowed to one town."""
    records = build_businesses(parse_table(text))
    if town is not None:
        records = filter_by_town(records, town)
    return records


def parse_emergency_csv(text: str, town: str | None = None) -> list[EmergencyService]:
    services = build_emergency_services(parse_table(text))
    if town is not None:
        services = filter_by_town(services, town)
    return services
