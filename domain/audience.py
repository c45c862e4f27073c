"""
Domain: Audience filter engine.

An AudienceFilter is a query, not an entity: it is built per request and
discarded afterwards. Every clause that is present must hold (AND); a clause
that is absent (None, blank, or an empty collection) imposes no constraint.

Clause semantics:
- industry / location: case-insensitive substring; a contact without a value
  fails the clause.
- intent_levels: the contact's score must be in the set; unscored contacts fail.
- date_range: inclusive bounds on activity_date; a contact without an
  activity date always fails.
- keywords: at least one filter keyword must be a substring of at least one
  contact keyword (case-insensitive); a contact without keywords fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .contact import Contact, IntentLevel
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class DateRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("start", self.start)
        require_utc_timestamp("end", self.end)

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True, slots=True)
class AudienceFilter:
    """Filter criteria for audience queries."""

    industry: Optional[str] = None
    location: Optional[str] = None
    intent_levels: Optional[FrozenSet[IntentLevel]] = None
    date_range: Optional[DateRange] = None
    keywords: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        if self.intent_levels is not None and not isinstance(self.intent_levels, frozenset):
            object.__setattr__(self, "intent_levels", frozenset(self.intent_levels))
        if self.keywords is not None and not isinstance(self.keywords, tuple):
            object.__setattr__(self, "keywords", tuple(self.keywords))

    @property
    def is_empty(self) -> bool:
        return not (
            _has_text(self.industry)
            or _has_text(self.location)
            or self.intent_levels
            or self.date_range is not None
            or _active_keywords(self.keywords)
        )


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Distinct facet values for populating filter controls."""

    industries: List[str]
    locations: List[str]


def _has_text(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _active_keywords(keywords: Optional[Iterable[str]]) -> List[str]:
    return [k.lower() for k in keywords or () if k and k.strip()]


def _substring_matches(needle: Optional[str], haystack: Optional[str]) -> bool:
    if not _has_text(needle):
        return True
    if not haystack:
        return False
    return needle.strip().lower() in haystack.lower()


def matches_filter(contact: Contact, criteria: AudienceFilter) -> bool:
    """Evaluate every present clause of `criteria` against one contact."""

    if not _substring_matches(criteria.industry, contact.industry):
        return False

    if not _substring_matches(criteria.location, contact.location):
        return False

    if criteria.intent_levels:
        if contact.intent_score is None or contact.intent_score not in criteria.intent_levels:
            return False

    if criteria.date_range is not None:
        if contact.activity_date is None:
            return False
        if not criteria.date_range.contains(contact.activity_date):
            return False

    filter_keywords = _active_keywords(criteria.keywords)
    if filter_keywords:
        contact_keywords = [k.lower() for k in contact.keywords or ()]
        has_keyword = any(
            fk in ck for fk in filter_keywords for ck in contact_keywords
        )
        if not has_keyword:
            return False

    return True


def filter_contacts(contacts: Iterable[Contact], criteria: AudienceFilter) -> List[Contact]:
    """
    Return the contacts matching `criteria`, preserving input order.

    Pure and total: the input is not modified and no clause raises.
    """

    return [contact for contact in contacts if matches_filter(contact, criteria)]


def get_filter_options(contacts: Iterable[Contact]) -> FilterOptions:
    """Sorted, deduplicated industry and location values present in `contacts`."""

    industries = set()
    locations = set()
    for contact in contacts:
        if contact.industry:
            industries.add(contact.industry)
        if contact.location:
            locations.add(contact.location)

    return FilterOptions(industries=sorted(industries), locations=sorted(locations))


__all__ = [
    "AudienceFilter",
    "DateRange",
    "FilterOptions",
    "filter_contacts",
    "get_filter_options",
    "matches_filter",
]
