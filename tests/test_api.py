"""
API tests using FastAPI's TestClient.

The contact service runs on an in-memory store with a fixed clock; settings
and the outbound HTTP session are replaced through dependency overrides.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api import main
from api.dependencies import get_contact_service, get_http_session, get_settings
from api.main import app
from domain.contact import IntentLevel
from domain.settings import AppSettings
from repositories.contact_repository import InMemoryContactStore
from repositories.settings_repository import load_settings
from services.contact_service import ContactService

from conftest import NOW, make_contact

HEADER = "email,phone,name,company,industry,location,keywords,activityDate\n"


@pytest.fixture
def store() -> InMemoryContactStore:
    return InMemoryContactStore()


@pytest.fixture
def settings() -> dict:
    return {"value": AppSettings()}


@pytest.fixture
def http_session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(store, settings, http_session):
    service = ContactService(store, clock=lambda: NOW)
    app.dependency_overrides[get_contact_service] = lambda: service
    app.dependency_overrides[get_settings] = lambda: settings["value"]
    app.dependency_overrides[get_http_session] = lambda: http_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(store):
    store.replace_all([
        make_contact("a", email="a@x.com", industry="Technology", keywords=("buy",), days_ago=1)
        .with_score(IntentLevel.HIGH, NOW),
        make_contact("b", phone="555-0101", industry="Retail", location="Boston", days_ago=40)
        .with_score(IntentLevel.LOW, NOW),
    ])
    return store


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_contacts_with_summary(client, seeded) -> None:
    response = client.get("/api/v1/contacts")

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert body["summary"]["High"] == 1
    assert body["summary"]["Low"] == 1
    assert body["contacts"][0]["id"] == "a"
    assert body["contacts"][0]["intent_score"] == "High"


def test_download_template(client) -> None:
    response = client.get("/api/v1/contacts/template")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.startswith("email,phone,name,company,industry,location,keywords,activityDate")


def test_upload_csv_file(client, store) -> None:
    content = HEADER + "a@x.com,,A,,,,\"buy,demo\",\n,,NoContact,,,,,\n"

    response = client.post(
        "/api/v1/contacts/upload",
        files={"file": ("contacts.csv", content.encode("utf-8"), "text/csv")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_rows"] == 2
    assert body["imported"] == 1
    assert body["rejected"] == 1
    assert body["errors"] == ["Row 2: Must have email or phone"]
    assert body["contacts"][0]["intent_score"] == "High"
    assert len(store.load_all()) == 1


def test_import_csv_body(client, store) -> None:
    response = client.post(
        "/api/v1/contacts/import",
        content=(HEADER + ",555,Phone Only,,,,,\n").encode("utf-8"),
        headers={"Content-Type": "text/csv"},
    )

    assert response.status_code == 200
    assert response.json()["imported"] == 1
    assert store.load_all()[0].phone == "555"


def test_import_empty_body_is_rejected(client) -> None:
    response = client.post("/api/v1/contacts/import", content=b"")

    assert response.status_code == 400


def test_search_requires_api_key(client) -> None:
    response = client.post("/api/v1/contacts/search", json={"query": "crm"})

    assert response.status_code == 400


def test_search_imports_results(client, settings, http_session, store) -> None:
    settings["value"] = AppSettings(serp_api_key="serp")
    search_response = MagicMock(ok=True, status_code=200)
    search_response.json.return_value = {
        "organic_results": [{"title": "Acme | Buy now", "link": "https://a.example", "snippet": ""}]
    }
    http_session.get.return_value = search_response

    response = client.post("/api/v1/contacts/search", json={"query": "crm"})

    assert response.status_code == 200
    assert response.json()["imported"] == 1
    assert store.load_all()[0].company == "Acme"


def test_search_upstream_error_is_bad_gateway(client, settings, http_session) -> None:
    settings["value"] = AppSettings(serp_api_key="serp")
    http_session.get.return_value = MagicMock(ok=False, status_code=401, reason="Unauthorized")

    response = client.post("/api/v1/contacts/search", json={"query": "crm"})

    assert response.status_code == 502
    assert response.json()["detail"] == "API error: Unauthorized"


def test_rescore(client, seeded) -> None:
    response = client.post("/api/v1/contacts/rescore")

    assert response.status_code == 200
    assert response.json()["summary"]["Total"] == 2


def test_enrich_requires_api_key(client) -> None:
    assert client.post("/api/v1/contacts/enrich").status_code == 400


def test_update_contact(client, seeded) -> None:
    response = client.patch("/api/v1/contacts/b", json={"keywords": ["get a quote", "price list"]})

    assert response.status_code == 200
    assert response.json()["intent_score"] == "High"
    assert seeded.load_all()[1].keywords == ("get a quote", "price list")


def test_update_contact_rejects_intent_score(client, seeded) -> None:
    response = client.patch("/api/v1/contacts/b", json={"intent_score": "High"})

    assert response.status_code == 422


def test_update_contact_rejects_removing_identity(client, seeded) -> None:
    response = client.patch("/api/v1/contacts/b", json={"phone": None})

    assert response.status_code == 400
    assert response.json()["detail"] == "Must have email or phone"
    assert seeded.load_all()[1].phone == "555-0101"


def test_update_missing_contact(client) -> None:
    assert client.patch("/api/v1/contacts/nope", json={"name": "X"}).status_code == 404


def test_delete_contact(client, seeded) -> None:
    assert client.delete("/api/v1/contacts/a").status_code == 204
    assert client.delete("/api/v1/contacts/a").status_code == 404
    assert [c.contact_id for c in seeded.load_all()] == ["b"]


def test_clear_contacts(client, seeded) -> None:
    assert client.delete("/api/v1/contacts").status_code == 204
    assert seeded.load_all() == []


def test_build_audience(client, seeded) -> None:
    response = client.post("/api/v1/audience", json={"intent_levels": ["High"]})

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 1
    assert body["contacts"][0]["id"] == "a"
    assert body["filters_applied"] == {"intent_levels": ["High"]}


def test_audience_date_range(client, seeded) -> None:
    response = client.post(
        "/api/v1/audience",
        json={"date_range": {"start": "2025-06-01T00:00:00Z", "end": "2025-06-30T23:59:59Z"}},
    )

    assert [c["id"] for c in response.json()["contacts"]] == ["a"]


def test_audience_options(client, seeded) -> None:
    response = client.get("/api/v1/audience/options")

    assert response.json() == {"industries": ["Retail", "Technology"], "locations": ["Boston"]}


def test_export_csv(client, seeded) -> None:
    response = client.post("/api/v1/exports/csv?filename=out.csv", json={"industry": "retail"})

    assert response.status_code == 200
    assert response.headers["content-disposition"] == "attachment; filename=out.csv"
    lines = response.text.split("\n")
    assert len(lines) == 2
    assert lines[1].startswith('"b",')


def test_export_hashed(client, seeded) -> None:
    response = client.post("/api/v1/exports/hashed", json={})

    assert response.status_code == 200
    assert response.text.startswith('"hashed_email","hashed_phone","industry","location","intentScore"')
    assert "a@x.com" not in response.text
    assert "555-0101" not in response.text


def test_export_webhook_requires_url(client) -> None:
    assert client.post("/api/v1/exports/webhook", json={}).status_code == 400


def test_export_webhook(client, seeded, settings, http_session) -> None:
    settings["value"] = AppSettings(webhook_url="https://hook.example/in")
    http_session.post.return_value = MagicMock(status_code=202)

    response = client.post("/api/v1/exports/webhook", json={"filters": {"industry": "tech"}})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "count": 1,
        "message": "Sent 1 contacts to webhook.",
    }
    args, kwargs = http_session.post.call_args
    assert args == ("https://hook.example/in",)
    assert kwargs["json"]["count"] == 1


def test_export_webhook_failure(client, seeded, http_session) -> None:
    http_session.post.return_value = MagicMock(status_code=500)

    response = client.post(
        "/api/v1/exports/webhook",
        json={"webhook_url": "https://hook.example/override"},
    )

    assert response.json()["success"] is False
    assert response.json()["count"] == 2


def test_settings_round_trip(client, monkeypatch, tmp_path) -> None:
    for name in ("SERPAPI_API_KEY", "SKIP_TRACE_API_KEY", "WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SETTINGS_PATH", str(tmp_path / "settings.json"))

    response = client.put(
        "/api/v1/settings",
        json={"serp_api_key": "serp-secret-1234", "webhook_url": "https://hook.example"},
    )

    assert response.status_code == 200
    assert response.json()["serp_api_key"] == "************1234"

    response = client.put("/api/v1/settings", json={"skip_trace_api_key": "skip-9876"})
    body = client.get("/api/v1/settings").json()

    assert body == {
        "serp_api_key": "************1234",
        "skip_trace_api_key": "*****9876",
        "webhook_url": "https://hook.example",
    }


def test_run_serves_app_with_uvicorn(monkeypatch) -> None:
    serve = MagicMock()
    monkeypatch.setattr(main.uvicorn, "run", serve)
    monkeypatch.setenv("API_HOST", "127.0.0.1")
    monkeypatch.setenv("API_PORT", "9001")

    main.run()

    serve.assert_called_once_with("api.main:app", host="127.0.0.1", port=9001)


def test_settings_rejects_masked_key(client, monkeypatch, tmp_path) -> None:
    for name in ("SERPAPI_API_KEY", "SKIP_TRACE_API_KEY", "WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SETTINGS_PATH", str(tmp_path / "settings.json"))
    client.put("/api/v1/settings", json={"serp_api_key": "serp-secret-1234"})
    shown = client.get("/api/v1/settings").json()

    response = client.put("/api/v1/settings", json={**shown, "webhook_url": "https://hook.example"})

    assert response.status_code == 400
    assert "serp_api_key" in response.json()["detail"]
    assert load_settings().serp_api_key == "serp-secret-1234"
    assert load_settings().webhook_url is None
