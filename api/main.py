"""FastAPI app for the Town Connect directory service."""

from __future__ import annotations

from typing import Literal
from urllib.parse import parse_qsl

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from api import queries, whatsapp
from api.models import (
    BusinessRecord,
    EmergencyService,
    HealthResponse,
    SearchResponse,
    Sector,
    TenantConfig,
)
from api.payfast import PaymentLog, build_payment_record, validate_signature
from api.settings import Settings, get_settings
from api.tenants import resolve_tenant, with_sources
from pipeline.ingest_sheets import CsvSource, HttpCsvSource, SourceUnavailable

app = FastAPI(
    title="Town Connect",
    description="Local business directory for South African towns: listings, emergency numbers and WhatsApp search",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Dependencies ──


def get_source(settings: Settings = Depends(get_settings)) -> CsvSource:
    return HttpCsvSource(timeout=settings.http_timeout)


def current_tenant(request: Request, settings: Settings = Depends(get_settings)) -> TenantConfig:
    """Tenant for this request: TOWN_NAME override, else the Host header."""
    tenant = resolve_tenant(settings.town, request.url.hostname)
    return with_sources(tenant, settings.business_csv_url, settings.emergency_csv_url)


def get_payment_log(settings: Settings = Depends(get_settings)) -> PaymentLog:
    return PaymentLog(settings.payment_log_url, timeout=settings.http_timeout)


def get_whatsapp_client(settings: Settings = Depends(get_settings)) -> whatsapp.WhatsAppClient | None:
    if not (settings.whatsapp_token and settings.whatsapp_phone_number_id):
        return None
    return whatsapp.WhatsAppClient(settings.whatsapp_token, settings.whatsapp_phone_number_id)


@app.exception_handler(SourceUnavailable)
async def source_unavailable(request: Request, exc: SourceUnavailable):
    logger.error("listings unavailable: {}", exc)
    return JSONResponse(status_code=503, content={"detail": "Unable to load listings"})


# ── Directory ──


@app.get("/")
def root(tenant: TenantConfig = Depends(current_tenant)):
    return {
        "name": f"{tenant.town.name} Connect API",
        "version": "0.1.0",
        "town": tenant.slug,
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse)
def health(tenant: TenantConfig = Depends(current_tenant)):
    """Resolved tenant and the CSV endpoints it reads from."""
    return {
        "status": "ok",
        "town": tenant.slug,
        "sources": {"businesses": tenant.sources.businesses, "emergency": tenant.sources.emergency},
    }


@app.get("/config", response_model=TenantConfig)
def config(tenant: TenantConfig = Depends(current_tenant)):
    return tenant


@app.get("/sectors", response_model=list[Sector])
def sectors(tenant: TenantConfig = Depends(current_tenant)):
    return tenant.data.sectors


@app.get("/businesses", response_model=list[BusinessRecord])
async def businesses(
    sector: str | None = Query(None, description="Sector id, e.g. home-services"),
    featured: bool | None = Query(None, description="Only featured (true) or non-featured (false)"),
    q: str | None = Query(None, description="Keyword in name, subcategory or tags"),
    limit: int = Query(100, ge=1, le=500, description="Max results"),
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
):
    """Business listings for the current town (plus unscoped rows)."""
    records = await queries.load_businesses(tenant, source)
    return queries.get_businesses(records, sector, featured, q, limit)


@app.get("/businesses/{business_id}", response_model=BusinessRecord)
async def business(
    business_id: str,
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
):
    records = await queries.load_businesses(tenant, source)
    result = queries.get_business(records, business_id)
    if result is None:
        raise HTTPException(404, f"Business '{business_id}' not found")
    return result


@app.get("/emergency-services", response_model=list[EmergencyService])
async def emergency_services(
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
):
    return await queries.load_emergency_services(tenant, source)


@app.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query(..., min_length=1, description="Keyword, e.g. plumber"),
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
):
    """Same keyword search the WhatsApp bot runs, as JSON."""
    listings = await queries.load_listings(tenant, source)
    result = whatsapp.answer(q, listings, tenant, settings.support_phone, source="api")
    return {
        "keyword": q.strip(),
        "town": tenant.town.name,
        "count": len(result.matches),
        "matches": [queries.to_match(m) for m in result.matches],
        "reply": result.text,
    }


@app.get("/community/{kind}")
def community(
    kind: Literal["jobs", "events", "classifieds", "properties", "announcements"],
    tenant: TenantConfig = Depends(current_tenant),
):
    """Static community listings bundled with the tenant config."""
    return getattr(tenant.data, kind)


# ── WhatsApp bot ──


@app.get("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_get(
    request: Request,
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
):
    """Meta verification handshake, or `?q=` to try the bot from a browser."""
    params = dict(request.query_params)
    verification = whatsapp.verify_webhook(params, settings.whatsapp_verify_token)
    if verification is not None:
        ok, body = verification
        return PlainTextResponse(body, status_code=200 if ok else 403)

    q = params.get("q", "").strip()
    if not q:
        return "OK"
    try:
        listings = await queries.load_listings(tenant, source)
    except SourceUnavailable:
        return whatsapp.error_reply(tenant, settings.support_phone)
    return whatsapp.answer(q, listings, tenant, settings.support_phone, source="web").text


@app.post("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_post(
    request: Request,
    tenant: TenantConfig = Depends(current_tenant),
    source: CsvSource = Depends(get_source),
    settings: Settings = Depends(get_settings),
    client: whatsapp.WhatsAppClient | None = Depends(get_whatsapp_client),
):
    """Inbound WhatsApp message → keyword search → reply. Always answers OK to Meta."""
    if client is None:
        logger.error("WHATSAPP_TOKEN / WHATSAPP_PHONE_NUMBER_ID not configured")
        return "OK"

    try:
        payload = await request.json()
    except ValueError:
        return "OK"
    message = whatsapp.extract_message(payload)
    if message is None:
        return "OK"
    sender, text = message

    try:
        listings = await queries.load_listings(tenant, source)
    except SourceUnavailable:
        reply, location = whatsapp.error_reply(tenant, settings.support_phone), None
    else:
        result = whatsapp.answer(text, listings, tenant, settings.support_phone, source="whatsapp")
        reply, location = result.text, whatsapp.top_location(result.matches)

    try:
        await client.send_text(sender, reply)
        if location:
            await client.send_location(sender, location)
    except httpx.HTTPError as e:
        logger.error("whatsapp send failed: {}", e)
    return "OK"


# ── PayFast ──


@app.post("/payfast/itn", response_class=PlainTextResponse)
async def payfast_itn(
    request: Request,
    settings: Settings = Depends(get_settings),
    payment_log: PaymentLog = Depends(get_payment_log),
):
    """PayFast payment notification: verify, then log COMPLETE payments."""
    body = (await request.body()).decode("utf-8", errors="replace")
    data = dict(parse_qsl(body, keep_blank_values=True))

    if not validate_signature(data, settings.payfast_passphrase):
        logger.warning("invalid PayFast signature for m_payment_id={}", data.get("m_payment_id"))
        return PlainTextResponse("Invalid signature", status_code=400)

    record = build_payment_record(data)
    if record.payment_status != "COMPLETE":
        logger.info("payment {} status {}, not logged", record.payment_id, record.payment_status)
        return "OK"

    try:
        await payment_log.append(record)
    except httpx.HTTPError as e:
        # PayFast replays non-200 answers; the payment is already in the service log
        logger.error("payment log append failed for {}: {}", record.payment_id, e)
    return "OK"
