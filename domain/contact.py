"""
Domain: Contact entity.

Contract excerpts implemented here:
- A Contact is uniquely identified by contact_id, assigned at ingestion and
  never changed afterwards.
- source is a provenance tag (csv or search) and is immutable.
- created_at / updated_at are UTC timestamps; updated_at is refreshed on every
  mutation, including re-scoring.
- intent_score is derived by the intent classifier. This entity only stores the
  resulting level; it never computes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .time import require_utc_timestamp


class IntentLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ContactSource(str, Enum):
    CSV = "csv"
    SEARCH = "search"

    @classmethod
    def parse(cls, value: str) -> "ContactSource":
        """Resolve a stored source tag; accepts the legacy 'serpapi' tag."""

        if value == "serpapi":
            return cls.SEARCH
        return cls(value)


@dataclass(frozen=True, slots=True)
class EnrichedData:
    """
    Structured add-on populated by an external enrichment provider.

    Known fields are typed; anything else the provider returns lives in the
    open `additional_info` map.
    """

    address: Optional[str] = None
    social_profiles: Tuple[str, ...] = ()
    additional_info: Mapping[str, Any] = field(default_factory=dict)

    def merge(
        self,
        address: Optional[str] = None,
        social_profiles: Optional[Tuple[str, ...]] = None,
        additional_info: Optional[Mapping[str, Any]] = None,
    ) -> "EnrichedData":
        """Return a copy with new values layered over the existing ones."""

        return EnrichedData(
            address=address or self.address,
            social_profiles=tuple(social_profiles) if social_profiles else self.social_profiles,
            additional_info={**self.additional_info, **(additional_info or {})},
        )


@dataclass(frozen=True, slots=True)
class Contact:
    """
    Pure domain entity for a Contact.

    Immutability:
    - Frozen. Every change produces a new instance via `dataclasses.replace`,
      so a record handed to one caller is never altered under another.
    """

    contact_id: str
    source: ContactSource
    created_at: datetime
    updated_at: datetime

    # Identity
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None

    # Segmentation
    industry: Optional[str] = None
    location: Optional[str] = None

    # Intent evidence
    keywords: Tuple[str, ...] = ()
    activity_date: Optional[datetime] = None
    intent_score: Optional[IntentLevel] = None

    enriched_data: Optional[EnrichedData] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        require_utc_timestamp("updated_at", self.updated_at)
        if self.activity_date is not None:
            require_utc_timestamp("activity_date", self.activity_date)
        if not isinstance(self.keywords, tuple):
            object.__setattr__(self, "keywords", tuple(self.keywords))

    @property
    def has_identity(self) -> bool:
        """True when the contact carries an email or a phone number."""
        return bool(self.email) or bool(self.phone)

    def with_score(self, level: IntentLevel, scored_at: datetime) -> "Contact":
        return replace(self, intent_score=level, updated_at=scored_at)

    def touch(self, updated_at: datetime) -> "Contact":
        return replace(self, updated_at=updated_at)


__all__ = [
    "Contact",
    "ContactSource",
    "EnrichedData",
    "IntentLevel",
]
