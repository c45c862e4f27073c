"""
Contact enrichment via a skip-trace style API.

The provider is looked up by email, phone and name and may return:
- address, social_profiles, additional_data: merged into enriched_data
- name, company, location: override the contact's own values when present

Batch enrichment is strictly sequential: one request at a time with a fixed
delay between records to respect the provider's rate limit. Progress is
reported after every record. There is no cancellation.

Failure handling:
- A failed lookup (HTTP error, network error, malformed body) leaves that
  contact unchanged and the batch moves on.
- intent_score is never touched here; callers re-score after enrichment.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence

import requests

from domain.contact import Contact, EnrichedData
from domain.time import utc_now

logger = logging.getLogger(__name__)

DEFAULT_ENRICHMENT_URL = "https://api.example-skiptrace.com/v1/enrich"

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True, slots=True)
class EnrichmentPolicy:
    """Pacing for batch enrichment."""
    delay_seconds: float = 0.5


def enrichment_url() -> str:
    return os.getenv("SKIP_TRACE_URL", DEFAULT_ENRICHMENT_URL)


def _lookup_params(contact: Contact) -> dict[str, str]:
    params = {}
    if contact.email:
        params["email"] = contact.email
    if contact.phone:
        params["phone"] = contact.phone
    if contact.name:
        params["name"] = contact.name
    return params


def merge_enrichment(contact: Contact, data: Mapping[str, Any], now: datetime) -> Contact:
    """Layer a provider response over a contact. Returns a new Contact."""

    base = contact.enriched_data or EnrichedData()
    social = data.get("social_profiles")
    extra = data.get("additional_data")

    enriched = base.merge(
        address=data.get("address") or None,
        social_profiles=tuple(social) if isinstance(social, list) else None,
        additional_info=extra if isinstance(extra, Mapping) else None,
    )

    return replace(
        contact,
        enriched_data=enriched,
        name=data.get("name") or contact.name,
        company=data.get("company") or contact.company,
        location=data.get("location") or contact.location,
        updated_at=now,
    )


def enrich_contact(
    contact: Contact,
    api_key: str,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
    timeout: float = 30,
) -> Contact:
    """
    Enrich one contact.

    Returns:
        The merged contact, or the original contact unchanged if the lookup
        failed for any reason.
    """

    if session is None:
        with requests.Session() as http:
            return enrich_contact(contact, api_key, session=http, now=now, timeout=timeout)

    try:
        response = session.get(
            enrichment_url(),
            params=_lookup_params(contact),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Enrichment error: {e}", extra={"contact_id": contact.contact_id})
        return contact

    if not response.ok:
        logger.warning(
            f"Enrichment API error: {response.reason}",
            extra={"contact_id": contact.contact_id, "status_code": response.status_code},
        )
        return contact

    try:
        data = response.json()
    except ValueError as e:
        logger.warning(f"Enrichment response unreadable: {e}", extra={"contact_id": contact.contact_id})
        return contact

    if not isinstance(data, Mapping):
        logger.warning("Enrichment response is not an object", extra={"contact_id": contact.contact_id})
        return contact

    return merge_enrichment(contact, data, now or utc_now())


def enrich_contacts(
    contacts: Sequence[Contact],
    api_key: str,
    progress_cb: Optional[ProgressCallback] = None,
    policy: EnrichmentPolicy = EnrichmentPolicy(),
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], datetime] = utc_now,
) -> List[Contact]:
    """
    Enrich contacts one at a time, in order.

    progress_cb: optional callable(current, total) invoked after each record.
    Returns a new list the same length and order as `contacts`.
    """

    if session is None:
        with requests.Session() as http:
            return enrich_contacts(
                contacts,
                api_key,
                progress_cb=progress_cb,
                policy=policy,
                session=http,
                sleep=sleep,
                clock=clock,
            )

    total = len(contacts)
    enriched: List[Contact] = []

    for i, contact in enumerate(contacts):
        enriched.append(enrich_contact(contact, api_key, session=session, now=clock()))

        if progress_cb:
            progress_cb(i + 1, total)

        if i + 1 < total and policy.delay_seconds > 0:
            sleep(policy.delay_seconds)

    logger.info(f"Enrichment complete: {total} contacts processed")
    return enriched


__all__ = [
    "DEFAULT_ENRICHMENT_URL",
    "EnrichmentPolicy",
    "enrich_contact",
    "enrich_contacts",
    "merge_enrichment",
]
