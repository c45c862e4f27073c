"""
Search-result ingestion (SerpAPI).

Each organic search result becomes one contact:
- company: the title's leading segment before "|"
- keywords: lexicon terms found in the title and snippet
- activity_date: the time of the search

Search-derived contacts carry no email or phone; they are prospects to be
enriched later, so the CSV identity rule does not apply to them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import requests

from domain.contact import Contact, ContactSource
from domain.lexicon import SEARCH_EXTRACTION_KEYWORDS
from domain.time import utc_now
from services.ingestion_service import new_contact_id

logger = logging.getLogger(__name__)

SERPAPI_SEARCH_URL = "https://serpapi.com/search.json"
TITLE_SEPARATOR = "|"


@dataclass(frozen=True, slots=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    position: Optional[int] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "SearchResult":
        return cls(
            title=str(data.get("title") or ""),
            link=str(data.get("link") or ""),
            snippet=str(data.get("snippet") or ""),
            position=data.get("position"),
        )


@dataclass
class SearchOutcome:
    contacts: List[Contact] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_keywords(text: str, terms: Iterable[str] = SEARCH_EXTRACTION_KEYWORDS) -> Tuple[str, ...]:
    """Terms that occur in `text` (case-insensitive), in lexicon order."""

    lower_text = text.lower()
    return tuple(term for term in terms if term in lower_text)


def company_from_title(title: str) -> Optional[str]:
    lead = title.split(TITLE_SEPARATOR)[0].strip()
    return lead or title.strip() or None


def contact_from_search_result(result: SearchResult, now: datetime) -> Contact:
    return Contact(
        contact_id=new_contact_id(),
        source=ContactSource.SEARCH,
        created_at=now,
        updated_at=now,
        company=company_from_title(result.title),
        keywords=extract_keywords(f"{result.title} {result.snippet}"),
        activity_date=now,
    )


def search_contacts(
    query: str,
    api_key: str,
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
    timeout: float = 30,
) -> SearchOutcome:
    """
    Run a search and convert organic results into contacts.

    Never raises: HTTP, network and payload errors are reported through
    SearchOutcome.error.
    """

    if session is None:
        with requests.Session() as http:
            return search_contacts(query, api_key, session=http, now=now, timeout=timeout)

    now = now or utc_now()

    try:
        response = session.get(
            SERPAPI_SEARCH_URL,
            params={"q": query, "api_key": api_key},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Search request failed: {e}", extra={"query": query})
        return SearchOutcome(error=str(e))

    if not response.ok:
        logger.warning(
            "Search API returned an error status",
            extra={"query": query, "status_code": response.status_code},
        )
        return SearchOutcome(error=f"API error: {response.reason}")

    try:
        data = response.json()
    except ValueError as e:
        return SearchOutcome(error=f"Invalid search response: {e}")

    if not isinstance(data, Mapping):
        return SearchOutcome(error="Invalid search response: expected a JSON object")

    if data.get("error"):
        return SearchOutcome(error=str(data["error"]))

    items = data.get("organic_results") or []
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        return SearchOutcome(error="Invalid search response: malformed organic_results")

    results = [SearchResult.from_api(item) for item in items]
    contacts = [contact_from_search_result(result, now) for result in results]

    logger.info(
        f"Search returned {len(contacts)} contacts",
        extra={"query": query, "result_count": len(contacts)},
    )
    return SearchOutcome(contacts=contacts)


__all__ = [
    "SERPAPI_SEARCH_URL",
    "SearchOutcome",
    "SearchResult",
    "company_from_title",
    "contact_from_search_result",
    "extract_keywords",
    "search_contacts",
]
