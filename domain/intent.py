"""
Domain: Intent classification.

Rules (first match wins):
- High:   2+ high-intent keywords, OR activity within 7 days with at least one
          high-intent keyword.
- Medium: 1+ high-intent keyword, OR 2+ medium-intent keywords, OR activity
          within 14 days (recency alone is enough at this tier).
- Low:    everything else, including contacts with no keywords and no usable
          activity date.

Classification is total. Missing keywords or activity dates degrade to "no
evidence" instead of raising. The current time is always passed in; nothing
here reads the wall clock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .contact import Contact, IntentLevel
from .lexicon import DEFAULT_LEXICON, KeywordLexicon
from .time import whole_days_between

HIGH_RECENCY_DAYS = 7
MEDIUM_RECENCY_DAYS = 14


@dataclass(frozen=True, slots=True)
class IntentSignals:
    """Evidence gathered from one contact at one point in time."""

    high_count: int
    medium_count: int
    days_since_activity: float  # math.inf when there is no activity date

    def level(self) -> IntentLevel:
        if self.high_count >= 2 or (
            self.days_since_activity <= HIGH_RECENCY_DAYS and self.high_count >= 1
        ):
            return IntentLevel.HIGH

        if (
            self.high_count >= 1
            or self.medium_count >= 2
            or self.days_since_activity <= MEDIUM_RECENCY_DAYS
        ):
            return IntentLevel.MEDIUM

        return IntentLevel.LOW


def days_since(activity_date: Optional[datetime], now: datetime) -> float:
    """Whole days from activity_date to now; infinitely stale when unknown."""

    if activity_date is None:
        return math.inf
    return whole_days_between(activity_date, now)


def extract_signals(
    contact: Contact,
    now: datetime,
    lexicon: KeywordLexicon = DEFAULT_LEXICON,
) -> IntentSignals:
    keywords = [k.lower() for k in contact.keywords or ()]
    return IntentSignals(
        high_count=lexicon.count_high(keywords),
        medium_count=lexicon.count_medium(keywords),
        days_since_activity=days_since(contact.activity_date, now),
    )


def classify_intent(
    contact: Contact,
    now: datetime,
    lexicon: KeywordLexicon = DEFAULT_LEXICON,
) -> IntentLevel:
    """
    Classify a single contact.

    Args:
        contact: Contact to classify (never modified)
        now: Reference time for recency rules
        lexicon: Keyword tiers to match against

    Returns:
        The IntentLevel for the contact's current keywords and activity date.

    Examples:
        Two high-intent keywords score High however old the activity is.
        One high-intent keyword with activity 8 days ago scores Medium.
        No keywords with activity exactly 14 days ago scores Medium; at 15
        days it scores Low.
    """

    return extract_signals(contact, now, lexicon).level()


def score_contacts(
    contacts: Iterable[Contact],
    now: datetime,
    lexicon: KeywordLexicon = DEFAULT_LEXICON,
) -> List[Contact]:
    """
    Re-score every contact, returning new instances.

    updated_at is stamped with `now` for every contact processed, whether or
    not its level changed.
    """

    return [
        contact.with_score(classify_intent(contact, now, lexicon), now)
        for contact in contacts
    ]


def get_intent_summary(contacts: Iterable[Contact]) -> dict[str, int]:
    """
    Count contacts per intent level.

    Returns:
        Dictionary with counts: {"High": n, "Medium": n, "Low": n,
        "Unscored": n, "Total": n}
    """

    summary = {level.value: 0 for level in (IntentLevel.HIGH, IntentLevel.MEDIUM, IntentLevel.LOW)}
    unscored = 0
    for contact in contacts:
        if contact.intent_score is None:
            unscored += 1
        else:
            summary[contact.intent_score.value] += 1

    summary["Unscored"] = unscored
    summary["Total"] = sum(summary.values())
    return summary


__all__ = [
    "HIGH_RECENCY_DAYS",
    "MEDIUM_RECENCY_DAYS",
    "IntentSignals",
    "classify_intent",
    "days_since",
    "extract_signals",
    "get_intent_summary",
    "score_contacts",
]
