"""
Contact repository (persistence).

The core only ever needs two operations from storage: read the whole contact
collection, and replace the whole collection. There is no partial update API;
callers load, compute, and write everything back. Concurrent writers are not
coordinated (last writer wins).

Adapters:
- InMemoryContactStore: process-local, used by tests and the `memory` backend.
- JsonFileContactStore: a single JSON array on disk.
- SupabaseContactStore: a Supabase table holding one row per contact.

No business rules (scoring, filtering, validation) belong here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from domain.contact import Contact, ContactSource, EnrichedData, IntentLevel
from domain.time import parse_utc_datetime, to_iso_utc

logger = logging.getLogger(__name__)

# Supabase table name for Contact records.
# Keep this aligned with your database schema.
_CONTACTS_TABLE: str = "contacts"


class ContactStore(Protocol):
    def load_all(self) -> List[Contact]:
        ...

    def replace_all(self, contacts: Sequence[Contact]) -> None:
        ...


# ============================================================================
# Wire format (camelCase JSON, shared by the file store, API and webhook)
# ============================================================================

def _enriched_to_dict(data: Optional[EnrichedData]) -> Optional[Dict[str, Any]]:
    if data is None:
        return None
    return {
        "address": data.address,
        "socialProfiles": list(data.social_profiles),
        "additionalInfo": dict(data.additional_info),
    }


def _enriched_from_dict(value: Any) -> Optional[EnrichedData]:
    if not isinstance(value, Mapping):
        return None
    return EnrichedData(
        address=value.get("address") or None,
        social_profiles=tuple(value.get("socialProfiles") or value.get("social_profiles") or ()),
        additional_info=dict(value.get("additionalInfo") or value.get("additional_info") or {}),
    )


def contact_to_dict(contact: Contact) -> Dict[str, Any]:
    """Convert a domain Contact to its JSON wire representation."""

    return {
        "id": contact.contact_id,
        "email": contact.email,
        "phone": contact.phone,
        "name": contact.name,
        "company": contact.company,
        "industry": contact.industry,
        "location": contact.location,
        "keywords": list(contact.keywords),
        "activityDate": to_iso_utc(contact.activity_date) if contact.activity_date else None,
        "intentScore": contact.intent_score.value if contact.intent_score else None,
        "enrichedData": _enriched_to_dict(contact.enriched_data),
        "source": contact.source.value,
        "createdAt": to_iso_utc(contact.created_at),
        "updatedAt": to_iso_utc(contact.updated_at),
    }


def contact_from_dict(data: Mapping[str, Any]) -> Contact:
    """
    Convert a JSON wire record into a domain Contact.

    Raises:
        KeyError: If id, source or a timestamp is missing
        ValueError: If source, intentScore or a timestamp is invalid
    """

    def get_optional(key: str) -> Optional[str]:
        value = data.get(key)
        return str(value) if value else None

    created_at = parse_utc_datetime(data["createdAt"])
    updated_at = parse_utc_datetime(data.get("updatedAt")) or created_at
    if created_at is None:
        raise ValueError(f"Invalid createdAt for contact {data.get('id')!r}")

    score = data.get("intentScore")

    return Contact(
        contact_id=str(data["id"]),
        source=ContactSource.parse(str(data["source"])),
        created_at=created_at,
        updated_at=updated_at,
        email=get_optional("email"),
        phone=get_optional("phone"),
        name=get_optional("name"),
        company=get_optional("company"),
        industry=get_optional("industry"),
        location=get_optional("location"),
        keywords=tuple(str(k) for k in data.get("keywords") or ()),
        activity_date=parse_utc_datetime(data.get("activityDate")),
        intent_score=IntentLevel(score) if score else None,
        enriched_data=_enriched_from_dict(data.get("enrichedData")),
    )


# ============================================================================
# In-memory store
# ============================================================================

class InMemoryContactStore:
    """Process-local store. Reads and writes copy the collection."""

    def __init__(self, contacts: Optional[Sequence[Contact]] = None) -> None:
        self._contacts: List[Contact] = list(contacts or [])

    def load_all(self) -> List[Contact]:
        return list(self._contacts)

    def replace_all(self, contacts: Sequence[Contact]) -> None:
        self._contacts = list(contacts)


# ============================================================================
# JSON file store
# ============================================================================

class JsonFileContactStore:
    """
    Stores the whole collection as one JSON array (UTF-8).

    A missing file reads as an empty collection.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_all(self) -> List[Contact]:
        if not self.path.exists():
            return []

        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return []

        records = json.loads(text)
        if not isinstance(records, list):
            raise ValueError(f"Contact store {self.path} must contain a JSON array")
        return [contact_from_dict(record) for record in records]

    def replace_all(self, contacts: Sequence[Contact]) -> None:
        payload = [contact_to_dict(contact) for contact in contacts]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(
            "Contact store written",
            extra={"path": str(self.path), "contact_count": len(payload)},
        )


# ============================================================================
# Supabase store
# ============================================================================

def _contact_to_row(contact: Contact) -> dict[str, Any]:
    """Convert a domain Contact to a Supabase row payload."""

    return {
        # Core identifiers
        "contact_id": contact.contact_id,
        "source": contact.source.value,
        "created_at_utc": to_iso_utc(contact.created_at),
        "updated_at_utc": to_iso_utc(contact.updated_at),

        # Identity
        "email": contact.email or "",
        "phone": contact.phone or "",
        "name": contact.name or "",
        "company": contact.company or "",

        # Segmentation
        "industry": contact.industry or "",
        "location": contact.location or "",

        # Intent evidence
        "keywords": list(contact.keywords),
        "activity_date_utc": to_iso_utc(contact.activity_date) if contact.activity_date else None,
        "intent_score": contact.intent_score.value if contact.intent_score else None,

        # Enrichment (jsonb)
        "enriched_data": _enriched_to_dict(contact.enriched_data),
    }


def _row_to_contact(row: Mapping[str, Any]) -> Contact:
    """Convert a Supabase row into a domain Contact."""

    # Helper to convert empty strings to None
    def get_optional(key: str) -> str | None:
        value = row.get(key, "")
        return value if value else None

    created_at = parse_utc_datetime(row["created_at_utc"])
    if created_at is None:
        raise ValueError(f"Invalid created_at_utc for contact {row.get('contact_id')!r}")

    score = row.get("intent_score")

    return Contact(
        contact_id=str(row["contact_id"]),
        source=ContactSource.parse(str(row["source"])),
        created_at=created_at,
        updated_at=parse_utc_datetime(row.get("updated_at_utc")) or created_at,
        email=get_optional("email"),
        phone=get_optional("phone"),
        name=get_optional("name"),
        company=get_optional("company"),
        industry=get_optional("industry"),
        location=get_optional("location"),
        keywords=tuple(row.get("keywords") or ()),
        activity_date=parse_utc_datetime(row.get("activity_date_utc")),
        intent_score=IntentLevel(score) if score else None,
        enriched_data=_enriched_from_dict(row.get("enriched_data")),
    )


class SupabaseContactStore:
    """
    Supabase-backed store.

    replace_all deletes every row and inserts the new collection. It is not
    transactional; a failure between the two requests leaves the table empty
    and is reported as RuntimeError.
    """

    def __init__(self, client: Any, table: str = _CONTACTS_TABLE) -> None:
        self.client = client
        self.table = table

    def load_all(self) -> List[Contact]:
        response = self.client.table(self.table).select("*").execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to load contacts: {error}")

        rows = getattr(response, "data", None) or []
        return [_row_to_contact(row) for row in rows]

    def replace_all(self, contacts: Sequence[Contact]) -> None:
        # PostgREST refuses an unfiltered delete; match every row instead.
        response = self.client.table(self.table).delete().neq("contact_id", "").execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to clear contacts: {error}")

        if not contacts:
            return

        payloads = [_contact_to_row(contact) for contact in contacts]
        response = self.client.table(self.table).insert(payloads).execute()
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to insert {len(payloads)} contacts: {error}")


__all__ = [
    "ContactStore",
    "InMemoryContactStore",
    "JsonFileContactStore",
    "SupabaseContactStore",
    "contact_from_dict",
    "contact_to_dict",
]
