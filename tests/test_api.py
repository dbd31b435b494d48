"""HTTP surface, with the sheets, payment log and WhatsApp client stubbed."""

from api.main import app, get_source, get_whatsapp_client
from api.payfast import generate_signature
from api.settings import Settings, get_settings
from pipeline.ingest_sheets import BUSINESS_CSV_URL

from conftest import StaticCsvSource

PASSPHRASE = "jt7NOE43FZPn"


def _signed(**fields):
    data = {
        "m_payment_id": "VC-1042",
        "pf_payment_id": "1089250",
        "payment_status": "COMPLETE",
        "amount_gross": "349.00",
        "item_name": "Premium listing",
        "custom_str1": "Joe's Garage",
        **fields,
    }
    data["signature"] = generate_signature(data, PASSPHRASE)
    return data


def test_root_and_health(client):
    assert client.get("/").json()["town"] == "vaalwater"
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["sources"]["businesses"] == BUSINESS_CSV_URL


def test_config_follows_host_header(client):
    assert client.get("/config").json()["slug"] == "vaalwater"
    resp = client.get("/config", headers={"host": "www.menlynconnect.co.za"})
    assert resp.json()["slug"] == "menlyn"
    assert resp.json()["pricing"]["micro"]["monthly"] == "R75"


def test_town_override_beats_host(client):
    app.dependency_overrides[get_settings] = lambda: Settings(town="lephalale")
    resp = client.get("/config", headers={"host": "menlynconnect.co.za"})
    assert resp.json()["town"]["name"] == "Lephalale"


def test_sectors(client):
    sectors = client.get("/sectors").json()
    assert len(sectors) == 14
    assert sectors[0]["id"] == "home-services"


def test_businesses_are_town_scoped(client):
    names = [b["name"] for b in client.get("/businesses").json()]
    assert set(names) == {"Bushveld Plumbing", "Health and Beauty", "ER24", "Joe's Garage", "Bean There"}
    assert names[:2] == ["Health and Beauty", "Bean There"]

    menlyn = client.get("/businesses", headers={"host": "menlyn.townconnect.co.za"}).json()
    assert [b["name"] for b in menlyn] == ["ER24", "Menlyn Motors"]


def test_businesses_filters(client):
    resp = client.get("/businesses", params={"sector": "automotive"})
    assert [b["name"] for b in resp.json()] == ["Joe's Garage"]
    assert client.get("/businesses", params={"limit": 0}).status_code == 422


def test_business_detail(client):
    resp = client.get("/businesses/1")
    assert resp.json()["lat"] == -24.2967
    assert client.get("/businesses/csv-6").json()["name"] == "Bean There"
    assert client.get("/businesses/999").status_code == 404


def test_emergency_services(client):
    names = [s["service_name"] for s in client.get("/emergency-services").json()]
    assert names == ["Vaalwater SAPS", "ER24 Emergency"]


def test_search(client):
    body = client.get("/search", params={"q": "police"}).json()
    assert body["count"] == 1
    assert body["matches"][0]["kind"] == "emergency"
    assert "Vaalwater SAPS" in body["reply"]


def test_community_lists_are_empty_by_default(client):
    assert client.get("/community/jobs").json() == []
    assert client.get("/community/announcements").json() == []
    assert client.get("/community/unknown").status_code == 422


def test_unreachable_sheet_is_503(client):
    app.dependency_overrides[get_source] = lambda: StaticCsvSource({})
    resp = client.get("/businesses")
    assert resp.status_code == 503
    assert resp.json() == {"detail": "Unable to load listings"}


# ── WhatsApp ──


def test_whatsapp_verify_handshake(client):
    params = {"hub.mode": "subscribe", "hub.verify_token": "verify-me", "hub.challenge": "42"}
    resp = client.get("/whatsapp", params=params)
    assert resp.status_code == 200
    assert resp.text == "42"

    resp = client.get("/whatsapp", params={**params, "hub.verify_token": "nope"})
    assert resp.status_code == 403


def test_whatsapp_browser_query(client):
    assert "*Bushveld Plumbing*" in client.get("/whatsapp", params={"q": "plumb"}).text
    text = client.get("/whatsapp", params={"q": "farrier"}).text
    assert text.startswith("No farrier listed in Vaalwater yet.")


def test_whatsapp_browser_query_when_sheet_is_down(client):
    app.dependency_overrides[get_source] = lambda: StaticCsvSource({})
    resp = client.get("/whatsapp", params={"q": "plumber"})
    assert resp.status_code == 200
    assert resp.text.startswith("Sorry, something went wrong.")


def _inbound(body, sender="27825550101"):
    return {
        "object": "whatsapp_business_account",
        "entry": [{"changes": [{"value": {"messages": [
            {"from": sender, "type": "text", "text": {"body": body}},
        ]}}]}],
    }


def test_whatsapp_message_gets_reply_and_location(client, wa_client):
    resp = client.post("/whatsapp", json=_inbound("plumber"))
    assert resp.text == "OK"
    ((to, body),) = wa_client.texts
    assert to == "27825550101"
    assert body.startswith("*Bushveld Plumbing*")
    ((_, location),) = wa_client.locations
    assert location["name"] == "Bushveld Plumbing"
    assert location["latitude"] == "-24.2967"


def test_whatsapp_no_match_sends_no_location(client, wa_client):
    client.post("/whatsapp", json=_inbound("farrier"))
    assert wa_client.texts[0][1].startswith("No farrier listed")
    assert wa_client.locations == []


def test_whatsapp_status_events_are_acknowledged(client, wa_client):
    payload = {"entry": [{"changes": [{"value": {"statuses": [{"status": "read"}]}}]}]}
    assert client.post("/whatsapp", json=payload).text == "OK"
    assert wa_client.texts == []


def test_whatsapp_without_credentials_still_ok(client, wa_client):
    app.dependency_overrides[get_whatsapp_client] = lambda: None
    assert client.post("/whatsapp", json=_inbound("plumber")).text == "OK"
    assert wa_client.texts == []


# ── PayFast ──


def test_payfast_complete_is_logged(client, payment_log):
    resp = client.post("/payfast/itn", data=_signed())
    assert resp.status_code == 200
    assert resp.text == "OK"
    (record,) = payment_log.records
    assert record.payment_id == "VC-1042"
    assert record.business_name == "Joe's Garage"


def test_payfast_bad_signature_rejected(client, payment_log):
    data = {**_signed(), "amount_gross": "1.00"}
    resp = client.post("/payfast/itn", data=data)
    assert resp.status_code == 400
    assert resp.text == "Invalid signature"
    assert payment_log.records == []


def test_payfast_pending_not_logged(client, payment_log):
    resp = client.post("/payfast/itn", data=_signed(payment_status="PENDING"))
    assert resp.status_code == 200
    assert payment_log.records == []


def test_payfast_undecodable_body_is_rejected(client, payment_log):
    resp = client.post(
        "/payfast/itn",
        content=b"m_payment_id=VC-1042&item_name=Caf\xe9&payment_status=COMPLETE",
        headers={"content-type": "application/x-www-form-urlencoded"},
    )
    assert resp.status_code == 400
    assert payment_log.records == []
