"""
Tests for `services/enrichment_service.py`.

Verifies that:
- Provider data is merged into enriched_data and overrides name/company/location
- Any lookup failure leaves the contact unchanged
- Batches run in order, report progress, and pause only between records
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import requests

from domain.contact import EnrichedData, IntentLevel
from services.enrichment_service import (
    EnrichmentPolicy,
    enrich_contact,
    enrich_contacts,
    merge_enrichment,
)

from conftest import NOW, make_contact


def _ok(payload):
    response = MagicMock(ok=True, status_code=200, reason="OK")
    response.json.return_value = payload
    return response


def test_merge_enrichment_overrides_and_merges() -> None:
    contact = make_contact(
        "a",
        name="J. Doe",
        company="Acme",
        location="Austin",
        enriched_data=EnrichedData(additional_info={"source": "csv", "title": "CTO"}),
    ).with_score(IntentLevel.HIGH, NOW - timedelta(days=1))

    data = {
        "name": "Jane Doe",
        "location": "Dallas, TX",
        "address": "1 Main St",
        "social_profiles": ["https://linkedin.example/jane"],
        "additional_data": {"title": "CEO"},
    }

    merged = merge_enrichment(contact, data, NOW)

    assert merged.name == "Jane Doe"
    assert merged.company == "Acme"
    assert merged.location == "Dallas, TX"
    assert merged.enriched_data.address == "1 Main St"
    assert merged.enriched_data.social_profiles == ("https://linkedin.example/jane",)
    assert merged.enriched_data.additional_info == {"source": "csv", "title": "CEO"}
    assert merged.intent_score == IntentLevel.HIGH
    assert merged.updated_at == NOW


def test_merge_enrichment_empty_response_keeps_fields() -> None:
    contact = make_contact("a", name="Jane")

    merged = merge_enrichment(contact, {}, NOW)

    assert merged.name == "Jane"
    assert merged.enriched_data == EnrichedData()


def test_enrich_contact_sends_lookup_params_and_auth() -> None:
    session = MagicMock()
    session.get.return_value = _ok({"address": "1 Main St"})
    contact = make_contact("a", email="a@x.com", name="Jane")

    enriched = enrich_contact(contact, "secret", session=session, now=NOW)

    assert enriched.enriched_data.address == "1 Main St"
    _, kwargs = session.get.call_args
    assert kwargs["params"] == {"email": "a@x.com", "name": "Jane"}
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_enrich_contact_uses_configured_url(monkeypatch) -> None:
    monkeypatch.setenv("SKIP_TRACE_URL", "https://enrich.example/v2")
    session = MagicMock()
    session.get.return_value = _ok({})

    enrich_contact(make_contact("a", email="a@x.com"), "k", session=session, now=NOW)

    args, _ = session.get.call_args
    assert args == ("https://enrich.example/v2",)


def test_enrich_contact_http_error_returns_original() -> None:
    session = MagicMock()
    session.get.return_value = MagicMock(ok=False, status_code=500, reason="Server Error")
    contact = make_contact("a", email="a@x.com")

    assert enrich_contact(contact, "k", session=session, now=NOW) is contact


def test_enrich_contact_network_error_returns_original() -> None:
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("down")
    contact = make_contact("a", email="a@x.com")

    assert enrich_contact(contact, "k", session=session, now=NOW) is contact


def test_enrich_contact_malformed_body_returns_original() -> None:
    session = MagicMock()
    response = MagicMock(ok=True, status_code=200)
    response.json.side_effect = ValueError("not json")
    session.get.return_value = response
    contact = make_contact("a", email="a@x.com")

    assert enrich_contact(contact, "k", session=session, now=NOW) is contact

    session.get.return_value = _ok(["not", "an", "object"])
    assert enrich_contact(contact, "k", session=session, now=NOW) is contact


def test_enrich_contacts_progress_order_and_pacing() -> None:
    session = MagicMock()
    session.get.side_effect = [
        _ok({"company": "First Co"}),
        requests.ConnectionError("down"),
        _ok({"company": "Third Co"}),
    ]
    contacts = [make_contact("a"), make_contact("b", company="Kept"), make_contact("c")]
    progress = []
    sleeps = []

    result = enrich_contacts(
        contacts,
        "k",
        progress_cb=lambda current, total: progress.append((current, total)),
        policy=EnrichmentPolicy(delay_seconds=0.25),
        session=session,
        sleep=sleeps.append,
        clock=lambda: NOW,
    )

    assert [c.contact_id for c in result] == ["a", "b", "c"]
    assert [c.company for c in result] == ["First Co", "Kept", "Third Co"]
    assert result[1] is contacts[1]
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert sleeps == [0.25, 0.25]


def test_enrich_contacts_empty_batch() -> None:
    progress = []

    result = enrich_contacts(
        [],
        "k",
        progress_cb=lambda current, total: progress.append((current, total)),
        session=MagicMock(),
        sleep=lambda _: None,
    )

    assert result == []
    assert progress == []


def test_enrich_contacts_zero_delay_never_sleeps() -> None:
    session = MagicMock()
    session.get.return_value = _ok({})
    sleeps = []

    enrich_contacts(
        [make_contact("a"), make_contact("b")],
        "k",
        policy=EnrichmentPolicy(delay_seconds=0),
        session=session,
        sleep=sleeps.append,
        clock=lambda: NOW,
    )

    assert sleeps == []


def test_enrich_contacts_closes_its_own_session(monkeypatch) -> None:
    session = MagicMock()
    session.__enter__.return_value = session
    session.get.return_value = _ok({"company": "Acme"})
    monkeypatch.setattr(requests, "Session", MagicMock(return_value=session))

    result = enrich_contacts(
        [make_contact("a"), make_contact("b")],
        "k",
        sleep=lambda _: None,
        clock=lambda: NOW,
    )

    assert [c.company for c in result] == ["Acme", "Acme"]
    assert session.get.call_count == 2
    session.__exit__.assert_called_once()


def test_enrich_contact_closes_its_own_session(monkeypatch) -> None:
    session = MagicMock()
    session.__enter__.return_value = session
    session.get.return_value = _ok({"address": "1 Main St"})
    monkeypatch.setattr(requests, "Session", MagicMock(return_value=session))

    enriched = enrich_contact(make_contact("a", email="a@x.com"), "k", now=NOW)

    assert enriched.enriched_data.address == "1 Main St"
    session.__exit__.assert_called_once()
