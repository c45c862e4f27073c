"""
Pytest configuration.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api packages, and provides shared
contact fixtures.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.contact import Contact, ContactSource  # noqa: E402

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_contact(
    contact_id: str = "c-1",
    days_ago: float | None = None,
    **fields,
) -> Contact:
    """Build a Contact relative to NOW. days_ago=None means no activity date."""

    activity_date = NOW - timedelta(days=days_ago) if days_ago is not None else fields.pop("activity_date", None)
    return Contact(
        contact_id=contact_id,
        source=fields.pop("source", ContactSource.CSV),
        created_at=fields.pop("created_at", NOW - timedelta(days=30)),
        updated_at=fields.pop("updated_at", NOW - timedelta(days=30)),
        activity_date=activity_date,
        **fields,
    )


@pytest.fixture
def now() -> datetime:
    return NOW
