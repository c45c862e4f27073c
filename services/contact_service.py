"""
Contact service.

Every mutation follows the same shape: load the whole collection from the
store, compute a new collection, write the whole collection back. The service
never assumes it is the only writer.

Handles:
- CSV and search imports (ingest, score, append)
- Re-scoring the whole collection
- Field updates and deletes
- Audience queries and facet extraction
- Batch enrichment (results committed only after the whole batch finishes)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence

from domain.audience import AudienceFilter, FilterOptions, filter_contacts, get_filter_options
from domain.contact import Contact, ContactSource
from domain.intent import classify_intent, score_contacts
from domain.time import parse_utc_datetime, utc_now
from repositories.contact_repository import ContactStore
from services.enrichment_service import EnrichmentPolicy, ProgressCallback, enrich_contacts
from services.ingestion_service import IngestionResult, ingest_csv_text, split_keywords

logger = logging.getLogger(__name__)

# Fields a caller may change directly. intent_score is derived and never
# settable; id, source and created_at are fixed at ingestion.
UPDATABLE_FIELDS = {
    "email",
    "phone",
    "name",
    "company",
    "industry",
    "location",
    "keywords",
    "activity_date",
}

PROTECTED_FIELDS = {"contact_id", "source", "created_at", "updated_at", "intent_score"}


class ContactNotFoundError(LookupError):
    """Raised when a contact id does not exist in the store."""
    pass


def _coerce_update(field_name: str, value: Any) -> Any:
    if field_name == "keywords":
        if value is None:
            return ()
        if isinstance(value, str):
            return split_keywords(value)
        return tuple(str(k).strip() for k in value if str(k).strip())

    if field_name == "activity_date":
        if value is None or value == "":
            return None
        parsed = parse_utc_datetime(value)
        if parsed is None:
            raise ValueError(f"Invalid activity_date: {value!r}")
        return parsed

    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ContactService:
    def __init__(
        self,
        store: ContactStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_contacts(self) -> List[Contact]:
        return self.store.load_all()

    def get_contact(self, contact_id: str) -> Contact:
        for contact in self.store.load_all():
            if contact.contact_id == contact_id:
                return contact
        raise ContactNotFoundError(f"Contact not found: {contact_id}")

    def build_audience(self, criteria: AudienceFilter) -> List[Contact]:
        return filter_contacts(self.store.load_all(), criteria)

    def filter_options(self) -> FilterOptions:
        return get_filter_options(self.store.load_all())

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _append(self, new_contacts: Sequence[Contact]) -> List[Contact]:
        now = self.clock()
        scored = score_contacts(new_contacts, now)
        if scored:
            self.store.replace_all(self.store.load_all() + scored)
        return scored

    def import_csv_text(self, text: str) -> IngestionResult:
        """Ingest CSV text, score the accepted rows, and append them."""

        result = ingest_csv_text(text, self.clock())
        result.contacts = self._append(result.contacts)
        return result

    def import_search_results(self, contacts: Sequence[Contact]) -> List[Contact]:
        """Score and append already-built contacts (e.g. from a search)."""

        return self._append(contacts)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def rescore_all(self) -> List[Contact]:
        rescored = score_contacts(self.store.load_all(), self.clock())
        self.store.replace_all(rescored)
        logger.info(f"Rescored {len(rescored)} contacts")
        return rescored

    def update_contact(self, contact_id: str, updates: Mapping[str, Any]) -> Contact:
        """
        Apply field updates to one contact and re-score it.

        Raises:
            ContactNotFoundError: If contact_id is unknown
            ValueError: If updates touch a protected or unknown field, or a
                value cannot be coerced, or a CSV contact would be left with
                neither email nor phone
        """

        protected = PROTECTED_FIELDS.intersection(updates)
        if protected:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(protected))}")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

        changes = {name: _coerce_update(name, value) for name, value in updates.items()}

        contacts = self.store.load_all()
        for index, contact in enumerate(contacts):
            if contact.contact_id != contact_id:
                continue

            now = self.clock()
            changed = replace(contact, **changes)
            if changed.source is ContactSource.CSV and not changed.has_identity:
                raise ValueError("Must have email or phone")
            updated = changed.with_score(classify_intent(changed, now), now)
            contacts[index] = updated
            self.store.replace_all(contacts)
            return updated

        raise ContactNotFoundError(f"Contact not found: {contact_id}")

    def delete_contact(self, contact_id: str) -> None:
        contacts = self.store.load_all()
        remaining = [c for c in contacts if c.contact_id != contact_id]
        if len(remaining) == len(contacts):
            raise ContactNotFoundError(f"Contact not found: {contact_id}")
        self.store.replace_all(remaining)

    def clear(self) -> None:
        self.store.replace_all([])

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def enrich_all(
        self,
        api_key: str,
        progress_cb: Optional[ProgressCallback] = None,
        policy: EnrichmentPolicy = EnrichmentPolicy(),
        **kwargs: Any,
    ) -> List[Contact]:
        """
        Enrich every stored contact, re-score, and write the batch back.

        Nothing is written unless the whole batch completes.
        """

        contacts = self.store.load_all()
        enriched = enrich_contacts(
            contacts,
            api_key,
            progress_cb=progress_cb,
            policy=policy,
            clock=self.clock,
            **kwargs,
        )
        rescored = score_contacts(enriched, self.clock())
        self.store.replace_all(rescored)
        return rescored


__all__ = [
    "ContactNotFoundError",
    "ContactService",
    "PROTECTED_FIELDS",
    "UPDATABLE_FIELDS",
]
