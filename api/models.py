"""Pydantic models: tenant configuration plus FastAPI response shapes."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pipeline.records import BusinessRecord, EmergencyService  # noqa: F401 (re-exported)


class Sector(BaseModel):
    id: str
    name: str
    icon: str = ""


# ── Tenant configuration ──


class TownInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tagline: str = ""
    region: str = ""


class BrandColors(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str
    accent: str


class Branding(BaseModel):
    model_config = ConfigDict(frozen=True)

    colors: BrandColors
    hero_image: str = ""
    favicon_letter: str = ""


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    whatsapp: str = ""  # international digits, no "+"
    email: str = ""
    phone: str = ""  # display format


class MapLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    zoom: int = 12


class Price(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly: str
    annual: str


class Pricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    micro: Price
    standard: Price
    premium: Price
    enterprise: Price


class DataSources(BaseModel):
    model_config = ConfigDict(frozen=True)

    businesses: str
    emergency: str | None = None


class Job(BaseModel):
    id: str
    title: str
    business_name: str = ""
    job_type: Literal["full-time", "part-time", "contract", "casual"] = "full-time"
    sector_id: str = ""
    description: str = ""
    location: str = ""
    posted_date: str = ""
    application_contact: str = ""
    is_active: bool = True


class Event(BaseModel):
    id: str
    title: str
    organizer_name: str = ""
    event_type: Literal["market", "festival", "workshop", "community", "other"] = "other"
    description: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    is_featured: bool = False


class Classified(BaseModel):
    id: str
    title: str
    category: Literal["for-sale", "wanted", "services", "other"] = "other"
    description: str = ""
    price: str | None = None
    seller_name: str = ""
    seller_contact: str = ""
    posted_date: str = ""
    is_active: bool = True


class Property(BaseModel):
    id: str
    title: str
    listing_type: Literal["sale", "rent"] = "sale"
    property_type: Literal["house", "apartment", "land", "commercial", "farm"] = "house"
    price: str = ""
    address: str = ""
    lat: float | None = None
    lng: float | None = None
    agent_name: str = ""
    agent_contact: str = ""
    is_featured: bool = False


class Announcement(BaseModel):
    id: str
    title: str
    category: Literal["lost-found", "community-notice", "alert", "other"] = "other"
    description: str = ""
    contact_name: str = ""
    contact_method: str = ""
    posted_date: str = ""
    expiry_date: str = ""
    is_active: bool = True


class TenantData(BaseModel):
    model_config = ConfigDict(frozen=True)

    sectors: list[Sector] = Field(default_factory=list)
    jobs: list[Job] = Field(default_factory=list)
    events: list[Event] = Field(default_factory=list)
    classifieds: list[Classified] = Field(default_factory=list)
    properties: list[Property] = Field(default_factory=list)
    announcements: list[Announcement] = Field(default_factory=list)


class TenantConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    town: TownInfo
    branding: Branding
    contact: Contact
    location: MapLocation
    pricing: Pricing
    sources: DataSources
    domains: list[str] = Field(default_factory=list)
    data: TenantData = Field(default_factory=TenantData)

    @property
    def site_domain(self) -> str:
        return self.domains[0] if self.domains else f"{self.slug.replace('-', '')}connect.co.za"


# ── Responses ──


class HealthResponse(BaseModel):
    status: str
    town: str
    sources: dict[str, str | None]


class SearchMatch(BaseModel):
    kind: Literal["business", "emergency"]
    id: str
    name: str
    category: str = ""
    phone: str = ""
    whatsapp: str = ""
    address: str = ""
    lat: float | None = None
    lng: float | None = None


class SearchResponse(BaseModel):
    keyword: str
    town: str
    count: int
    matches: list[SearchMatch] = Field(default_factory=list)
    reply: str = ""


class PaymentRecord(BaseModel):
    payment_id: str
    pf_payment_id: str = ""
    timestamp: str
    payment_status: str = ""
    amount: str = "0"
    business_name: str = "Unknown"
    plan: str = "Unknown"
    town: str = "Vaalwater"
    contact_email: str = ""
    contact_phone: str = ""
    name: str = ""
