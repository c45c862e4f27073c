"""
Domain: Keyword lexicon.

Static classification of terms into intent tiers. Matching is a
case-insensitive substring test against each contact keyword, so "price list"
contains "price" while "pricing" does not.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

HIGH_INTENT_KEYWORDS: Tuple[str, ...] = (
    "buy",
    "purchase",
    "price",
    "cost",
    "quote",
    "demo",
    "trial",
    "signup",
    "subscribe",
    "consultation",
    "solution",
    "implement",
)

MEDIUM_INTENT_KEYWORDS: Tuple[str, ...] = (
    "compare",
    "review",
    "best",
    "features",
    "benefits",
    "how to",
    "guide",
    "learn",
    "alternatives",
    "vs",
    "versus",
)

# Terms scanned for in search-result titles and snippets to seed keywords.
SEARCH_EXTRACTION_KEYWORDS: Tuple[str, ...] = (
    "buy",
    "purchase",
    "price",
    "cost",
    "quote",
    "demo",
    "trial",
    "signup",
    "subscribe",
    "compare",
    "review",
    "best",
    "solution",
)


def _count_matching(keywords: Iterable[str], terms: Tuple[str, ...]) -> int:
    count = 0
    for keyword in keywords:
        lowered = keyword.lower()
        if any(term in lowered for term in terms):
            count += 1
    return count


@dataclass(frozen=True, slots=True)
class KeywordLexicon:
    high: Tuple[str, ...] = HIGH_INTENT_KEYWORDS
    medium: Tuple[str, ...] = MEDIUM_INTENT_KEYWORDS

    def count_high(self, keywords: Iterable[str]) -> int:
        """Number of keywords containing at least one high-intent term."""
        return _count_matching(keywords, self.high)

    def count_medium(self, keywords: Iterable[str]) -> int:
        """Number of keywords containing at least one medium-intent term."""
        return _count_matching(keywords, self.medium)


DEFAULT_LEXICON = KeywordLexicon()


__all__ = [
    "DEFAULT_LEXICON",
    "HIGH_INTENT_KEYWORDS",
    "KeywordLexicon",
    "MEDIUM_INTENT_KEYWORDS",
    "SEARCH_EXTRACTION_KEYWORDS",
]
