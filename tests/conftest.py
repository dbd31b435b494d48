"""Shared fixtures: sample sheet exports, an in-memory CSV source, the API client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_payment_log, get_source, get_whatsapp_client
from api.settings import Settings, get_settings
from pipeline.ingest_sheets import BUSINESS_CSV_URL, EMERGENCY_CSV_URL, SourceUnavailable

BUSINESS_CSV = (
    "id,town,sectorId,subcategory,name,description,phone,whatsapp,email,website,facebook,"
    "instagram,address,lat,lng,tier,isFeatured,tags,imageUrl\n"
    '1,Vaalwater,,Plumber,Bushveld Plumbing,"Geysers, leaks and burst pipes",014 755 3839,'
    '082 555 0101,,,,,"12 Voortrekker St, Vaalwater",-24.2967,28.0731,standard,FALSE,'
    '"plumber, geyser, loodgieter",\n'
    "2,Vaalwater,health-wellness,Wellness Products,Health and Beauty,,0782898606,0782898606,"
    ',,,,61 Bosveld Street,,,micro,TRUE,"health, beauty",\n'
    "3,,emergency-services,Ambulance,ER24,,084 124,,,,,,,,,,FALSE,,\n"
    "4,Menlyn,,Mechanic,Menlyn Motors,,012 345 6789\n"
    "5,vaalwater,,mechanic,Joe's Garage,,014 755 0000\n"
    "6,Vaalwater,,bakery,,\n"
    ",Vaalwater,,Coffee Shop,Bean There,,,,,,,,,0,0,,true\n"
)

EMERGENCY_CSV = (
    "id,town,province,category,service_name,primary_phone,secondary_phone,whatsapp,ussd,"
    "email,hours,coverage_area\n"
    "e1,Vaalwater,Limpopo,Police,Vaalwater SAPS,014 755 3001,10111,,,,24/7,Vaalwater and surrounds\n"
    "e2,,National,Ambulance,ER24 Emergency,084 124,,,,,24/7,National\n"
    "e3,Menlyn,Gauteng,Police,Garsfontein SAPS,012 000 0000,,,,,24/7,Menlyn\n"
)


class StaticCsvSource:
    """In-memory stand-in for the published sheets."""

    def __init__(self, payloads: dict[str, str]):
        self.payloads = payloads
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.payloads:
            raise SourceUnavailable(url, "HTTP 404")
        return self.payloads[url]


class RecordingPaymentLog:
    def __init__(self):
        self.records = []

    async def append(self, record) -> None:
        self.records.append(record)


class RecordingWhatsAppClient:
    def __init__(self):
        self.texts: list[tuple[str, str]] = []
        self.locations: list[tuple[str, dict]] = []

    async def send_text(self, to: str, body: str) -> int:
        self.texts.append((to, body))
        return 200

    async def send_location(self, to: str, location: dict) -> int:
        self.locations.append((to, location))
        return 200


@pytest.fixture
def business_csv() -> str:
    return BUSINESS_CSV


@pytest.fixture
def emergency_csv() -> str:
    return EMERGENCY_CSV


@pytest.fixture
def source() -> StaticCsvSource:
    return StaticCsvSource({BUSINESS_CSV_URL: BUSINESS_CSV, EMERGENCY_CSV_URL: EMERGENCY_CSV})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        payfast_passphrase="jt7NOE43FZPn",
        whatsapp_verify_token="verify-me",
    )


@pytest.fixture
def payment_log() -> RecordingPaymentLog:
    return RecordingPaymentLog()


@pytest.fixture
def wa_client() -> RecordingWhatsAppClient:
    return RecordingWhatsAppClient()


@pytest.fixture
def client(settings, source, payment_log, wa_client):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_source] = lambda: source
    app.dependency_overrides[get_payment_log] = lambda: payment_log
    app.dependency_overrides[get_whatsapp_client] = lambda: wa_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
