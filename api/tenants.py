"""Town registry and tenant resolution.

Resolution order, first hit wins:
  1. explicit town override (TOWN_NAME); unknown names get a synthesised config
  2. exact hostname match in DOMAIN_MAP
  3. leftmost hostname label matching a town slug (vaalwater.townconnect.co.za)
  4. DEFAULT_TOWN
Resolution never fails; there is no case where the site refuses to render.
"""

from __future__ import annotations

import re

from api.models import (
    BrandColors,
    Branding,
    Contact,
    DataSources,
    MapLocation,
    Price,
    Pricing,
    Sector,
    TenantConfig,
    TenantData,
    TownInfo,
)
from pipeline.ingest_sheets import BUSINESS_CSV_URL, EMERGENCY_CSV_URL
from pipeline.sector_map import SECTORS

DEFAULT_TOWN = "vaalwater"

# geographic centre of South Africa, for towns we know nothing about
SA_CENTROID = MapLocation(lat=-28.4793, lng=24.6727, zoom=6)

DEFAULT_BRAND_COLORS = BrandColors(primary="#2d4a3e", secondary="#b87352", accent="#e8e2d6")


def _pricing(micro, standard, premium, enterprise) -> Pricing:
    return Pricing(
        micro=Price(monthly=micro[0], annual=micro[1]),
        standard=Price(monthly=standard[0], annual=standard[1]),
        premium=Price(monthly=premium[0], annual=premium[1]),
        enterprise=Price(monthly=enterprise[0], annual=enterprise[1]),
    )


DEFAULT_PRICING = _pricing(("R50", "R500"), ("R199", "R2,189"), ("R349", "R3,839"), ("R599", "R6,589"))
URBAN_PRICING = _pricing(("R75", "R750"), ("R249", "R2,739"), ("R449", "R4,939"), ("R799", "R8,789"))
# annual = 11 months
COASTAL_PRICING = _pricing(("R50", "R500"), ("R299", "R3,289"), ("R449", "R4,939"), ("R699", "R7,689"))

DEFAULT_SOURCES = DataSources(businesses=BUSINESS_CSV_URL, emergency=EMERGENCY_CSV_URL)

SHARED_SECTORS = [Sector(id=sid, name=name, icon=icon) for sid, (name, icon) in SECTORS.items()]

# slug → (name, tagline, region, (primary, secondary, accent), hero image,
#         (whatsapp, phone), (lat, lng, zoom), pricing)
_TOWNS: dict[str, tuple] = {
    "vaalwater": (
        "Vaalwater", "Waterberg Biosphere District", "Limpopo",
        ("#2d4a3e", "#b87352", "#e8e2d6"),
        "https://images.unsplash.com/photo-1547471080-7cc2caa01a7e?auto=format&fit=crop&q=80&w=1920",
        ("27688986081", "068 898 6081"), (-24.296, 28.113, 12), DEFAULT_PRICING,
    ),
    "menlyn": (
        "Menlyn", "Pretoria East Business Hub", "Gauteng",
        ("#1e3a8a", "#f59e0b", "#dbeafe"),
        "https://images.unsplash.com/photo-1577948000111-9c970dfe3743?auto=format&fit=crop&q=80&w=1920",
        ("27688986081", "068 898 6081"), (-25.7823, 28.2768, 13), URBAN_PRICING,
    ),
    "lephalale": (
        "Lephalale", "Powerhouse of the Waterberg", "Limpopo",
        ("#1e3a5f", "#f59e0b", "#fef3c7"), "",
        ("", ""), (-23.6667, 27.75, 13), DEFAULT_PRICING,
    ),
    "modimolle": (
        "Modimolle", "Heart of the Waterberg", "Limpopo",
        ("#b8860b", "#8b5a2b", "#f5deb3"), "",
        ("", ""), (-24.7, 28.4, 13), DEFAULT_PRICING,
    ),
    "blouberg": (
        "Blouberg", "West Coast Lifestyle Hub", "Western Cape",
        ("#0077b6", "#f4a261", "#caf0f8"),
        "https://res.cloudinary.com/dkn6tnxao/image/upload/v1768154086/EF8A1553-2_y0i9rc.jpg",
        ("", ""), (-33.7972, 18.462, 13), COASTAL_PRICING,
    ),
    "garsfontein": (
        "Garsfontein", "Pretoria East's Family Suburb", "Gauteng",
        ("#1e3a5f", "#d4af37", "#e8e2d6"), "",
        ("", ""), (-25.7959, 28.3006, 14), DEFAULT_PRICING,
    ),
    "parklands": (
        "Parklands", "Family & Services Hub", "Western Cape",
        ("#2d6a4f", "#40c4ff", "#d8f3dc"), "",
        ("", ""), (-33.8078, 18.5033, 14), DEFAULT_PRICING,
    ),
    "port-alfred": (
        "Port Alfred", "Sunshine Coast", "Eastern Cape",
        ("#1e6091", "#48cae4", "#caf0f8"), "",
        ("", ""), (-33.5906, 26.885, 13), DEFAULT_PRICING,
    ),
    "stellenbosch": (
        "Stellenbosch", "City of Oaks", "Western Cape",
        ("#722f37", "#c9a962", "#f5f0e6"),
        "https://res.cloudinary.com/dkn6tnxao/image/upload/v1769857174/nenad-gataric-2GZvGZh4dJc-unsplash_nvblen.jpg",
        ("", ""), (-33.9366, 18.8663, 14), COASTAL_PRICING,
    ),
}


def _domains(slug: str) -> list[str]:
    host = f"{slug.replace('-', '')}connect"
    return [f"{host}.co.za", f"www.{host}.co.za", f"{host}.netlify.app"]


def _build(slug: str) -> TenantConfig:
    name, tagline, region, colors, hero, (wa, phone), (lat, lng, zoom), pricing = _TOWNS[slug]
    domains = _domains(slug)
    return TenantConfig(
        id=slug,
        slug=slug,
        town=TownInfo(name=name, tagline=tagline, region=region),
        branding=Branding(
            colors=BrandColors(primary=colors[0], secondary=colors[1], accent=colors[2]),
            hero_image=hero,
            favicon_letter=name[0],
        ),
        contact=Contact(whatsapp=wa, email=f"hello@{domains[0]}", phone=phone),
        location=MapLocation(lat=lat, lng=lng, zoom=zoom),
        pricing=pricing,
        sources=DEFAULT_SOURCES,
        domains=domains,
        data=TenantData(sectors=SHARED_SECTORS),
    )


TOWN_CONFIGS: dict[str, TenantConfig] = {slug: _build(slug) for slug in _TOWNS}

DOMAIN_MAP: dict[str, str] = {
    domain: slug for slug, config in TOWN_CONFIGS.items() for domain in config.domains
}


def normalize_town(name: str) -> str:
    """'Port Alfred ' → 'port-alfred'."""
    return re.sub(r"\s+", "-", name.strip().lower())


def default_config(name: str) -> TenantConfig:
    """Minimal config for a town that has no registry entry."""
    slug = normalize_town(name)
    display = name.strip()
    return TenantConfig(
        id=slug,
        slug=slug,
        town=TownInfo(name=display),
        branding=Branding(colors=DEFAULT_BRAND_COLORS, favicon_letter=display[:1]),
        contact=Contact(),
        location=SA_CENTROID,
        pricing=DEFAULT_PRICING,
        sources=DEFAULT_SOURCES,
        domains=_domains(slug),
        data=TenantData(sectors=SHARED_SECTORS),
    )


def get_tenant(slug: str) -> TenantConfig | None:
    return TOWN_CONFIGS.get(normalize_town(slug))


def available_towns() -> list[str]:
    return list(TOWN_CONFIGS)


def resolve_tenant(env_town: str | None = None, hostname: str | None = None) -> TenantConfig:
    """Pick the active tenant for this request / process."""
    if env_town and env_town.strip():
        return TOWN_CONFIGS.get(normalize_town(env_town)) or default_config(env_town)

    if hostname:
        host = hostname.strip().lower().split(":")[0]
        if host in DOMAIN_MAP:
            return TOWN_CONFIGS[DOMAIN_MAP[host]]
        label = host.split(".")[0]
        if label in TOWN_CONFIGS:
            return TOWN_CONFIGS[label]

    return TOWN_CONFIGS[DEFAULT_TOWN]


def with_sources(tenant: TenantConfig, businesses: str, emergency: str | None) -> TenantConfig:
    """Copy of `tenant` reading from different CSV endpoints."""
    if tenant.sources.businesses == businesses and tenant.sources.emergency == emergency:
        return tenant
    return tenant.model_copy(update={"sources": DataSources(businesses=businesses, emergency=emergency)})
