"""
Tests for `domain/contact.py` and `domain/time.py`.

Covers contract rules:
- Contact timestamps must be UTC timezone-aware.
- Contact is immutable (frozen); changes produce new instances.
- EnrichedData merges layer new values over existing ones.
- Lenient timestamp parsing degrades to None instead of raising.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date, datetime, timedelta, timezone

import pytest

from domain.contact import Contact, ContactSource, EnrichedData, IntentLevel
from domain.time import parse_utc_datetime, whole_days_between

from conftest import NOW, make_contact


def test_contact_timestamps_must_be_utc() -> None:
    """Verify created_at / updated_at / activity_date enforce UTC."""

    with pytest.raises(ValueError):
        Contact(
            contact_id="c-1",
            source=ContactSource.CSV,
            created_at=datetime(2025, 1, 1, 0, 0, 0),
            updated_at=NOW,
        )

    with pytest.raises(ValueError):
        Contact(
            contact_id="c-1",
            source=ContactSource.CSV,
            created_at=NOW,
            updated_at=NOW,
            activity_date=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=-5))),
        )


def test_contact_is_immutable() -> None:
    """Verify intent_score cannot be assigned directly (frozen entity)."""

    contact = make_contact()

    with pytest.raises(FrozenInstanceError):
        contact.intent_score = IntentLevel.HIGH  # type: ignore[misc]


def test_with_score_returns_new_instance() -> None:
    """Verify scoring produces a new contact and leaves the original untouched."""

    contact = make_contact()
    scored = contact.with_score(IntentLevel.MEDIUM, NOW)

    assert scored is not contact
    assert scored.intent_score == IntentLevel.MEDIUM
    assert scored.updated_at == NOW
    assert contact.intent_score is None


def test_keywords_are_stored_as_tuple() -> None:
    contact = make_contact(keywords=["buy", "demo"])

    assert contact.keywords == ("buy", "demo")


def test_has_identity() -> None:
    assert make_contact(email="a@x.com").has_identity
    assert make_contact(phone="555").has_identity
    assert not make_contact(company="Acme").has_identity


def test_source_parse_accepts_legacy_tag() -> None:
    assert ContactSource.parse("serpapi") == ContactSource.SEARCH
    assert ContactSource.parse("csv") == ContactSource.CSV
    with pytest.raises(ValueError):
        ContactSource.parse("fax")


def test_enriched_data_merge_layers_values() -> None:
    base = EnrichedData(
        address="1 Old St",
        social_profiles=("https://x.example/a",),
        additional_info={"title": "CTO", "team": "Core"},
    )

    merged = base.merge(address=None, social_profiles=None, additional_info={"title": "CEO"})

    assert merged.address == "1 Old St"
    assert merged.social_profiles == ("https://x.example/a",)
    assert merged.additional_info == {"title": "CEO", "team": "Core"}
    assert base.additional_info == {"title": "CTO", "team": "Core"}


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-01-02T03:04:05Z", datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        ("2025-01-02T03:04:05+02:00", datetime(2025, 1, 2, 1, 4, 5, tzinfo=timezone.utc)),
        ("2025-01-02", datetime(2025, 1, 2, tzinfo=timezone.utc)),
        (date(2025, 1, 2), datetime(2025, 1, 2, tzinfo=timezone.utc)),
        (datetime(2025, 1, 2, 3, 4, 5), datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        ("", None),
        ("   ", None),
        ("next tuesday", None),
        (None, None),
        (12345, None),
    ],
)
def test_parse_utc_datetime(value, expected) -> None:
    """Verify lenient parsing: valid inputs normalize to UTC, junk yields None."""

    assert parse_utc_datetime(value) == expected


def test_whole_days_between_floors_partial_days() -> None:
    """Verify day counts use floor of whole 24-hour days."""

    start = datetime(2025, 1, 1, tzinfo=timezone.utc)

    assert whole_days_between(start, start + timedelta(hours=23, minutes=59)) == 0
    assert whole_days_between(start, start + timedelta(days=1)) == 1
    assert whole_days_between(start, start + timedelta(days=14, hours=23)) == 14
    assert whole_days_between(start + timedelta(hours=1), start) == -1
