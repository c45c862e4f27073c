"""
Audience export service.

Three export forms:
- Plain CSV: every contact field in a fixed column order.
- Hashed CSV: email and phone replaced by SHA-256 digests for ad-platform
  audience matching; industry, location and intent score pass through.
- Webhook: the full contact set POSTed as JSON {contacts, timestamp, count}.

CSV boundary:
- Comma separators, every cell double-quoted, "\n" line endings, UTF-8.
- Missing values render as empty cells.

Hash normalization (applied before digesting):
- Email: trimmed and lowercased.
- Phone: every non-digit character removed.
A missing value yields an empty cell, never the digest of an empty string.
"""

from __future__ import annotations

import csv
import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from io import StringIO
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from domain.contact import Contact
from domain.time import to_iso_utc, utc_now
from repositories.contact_repository import contact_to_dict

logger = logging.getLogger(__name__)

CONTACT_CSV_COLUMNS = [
    "id",
    "email",
    "phone",
    "name",
    "company",
    "industry",
    "location",
    "keywords",
    "intentScore",
    "activityDate",
    "source",
]

HASHED_CSV_COLUMNS = [
    "hashed_email",
    "hashed_phone",
    "industry",
    "location",
    "intentScore",
]

KEYWORD_DELIMITER = ";"

_NON_DIGITS = re.compile(r"\D")


def sanitize_csv_field(value: str | None, field_name: str = "unknown") -> str:
    """
    Sanitize field to prevent CSV injection attacks with security logging.

    Strips leading characters that can trigger formula execution in Excel/Sheets:
    =, +, -, @, tab, carriage return

    If dangerous characters are found and stripped, a warning is logged for
    security monitoring.

    Example:
        sanitize_csv_field("=1+1", "name")
        # Returns "1+1" and logs warning about stripped "=" character
    """
    if value is None or value == "":
        return ""

    text = str(value).strip()
    original_text = text
    dangerous_chars = {'=', '+', '-', '@', '\t', '\r'}

    stripped_chars = []
    while text and text[0] in dangerous_chars:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"CSV injection character(s) stripped from field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "csv_injection_prevention"
            }
        )

    return text


def _render_csv(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    # No trailing separator after the last row.
    return output.getvalue().rstrip("\n")


# ============================================================================
# Plain CSV
# ============================================================================

def contact_to_csv_row(contact: Contact) -> List[str]:
    return [
        contact.contact_id,
        contact.email or "",
        contact.phone or "",
        contact.name or "",
        contact.company or "",
        contact.industry or "",
        contact.location or "",
        KEYWORD_DELIMITER.join(contact.keywords),
        contact.intent_score.value if contact.intent_score else "",
        to_iso_utc(contact.activity_date) if contact.activity_date else "",
        contact.source.value,
    ]


def generate_contacts_csv(contacts: Iterable[Contact], sanitize: bool = False) -> str:
    """
    Render contacts as CSV text.

    Args:
        contacts: Contacts to export, in output order
        sanitize: Strip spreadsheet formula characters from every cell

    Returns:
        CSV content as a string
    """

    rows = []
    for contact in contacts:
        row = contact_to_csv_row(contact)
        if sanitize:
            row = [
                sanitize_csv_field(value, column)
                for column, value in zip(CONTACT_CSV_COLUMNS, row)
            ]
        rows.append(row)

    return _render_csv(CONTACT_CSV_COLUMNS, rows)


# ============================================================================
# Hashed CSV
# ============================================================================

@dataclass(frozen=True, slots=True)
class HashedAudienceRow:
    hashed_email: str
    hashed_phone: str
    industry: str
    location: str
    intent_score: str

    def as_list(self) -> List[str]:
        return [
            self.hashed_email,
            self.hashed_phone,
            self.industry,
            self.location,
            self.intent_score,
        ]


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_phone(phone: Optional[str]) -> str:
    return _NON_DIGITS.sub("", phone or "")


def hash_email(email: Optional[str]) -> str:
    normalized = normalize_email(email)
    return sha256_hex(normalized) if normalized else ""


def hash_phone(phone: Optional[str]) -> str:
    normalized = normalize_phone(phone)
    return sha256_hex(normalized) if normalized else ""


def build_hashed_rows(contacts: Iterable[Contact]) -> List[HashedAudienceRow]:
    """Apply the hashed export transform to every contact, preserving order."""

    return [
        HashedAudienceRow(
            hashed_email=hash_email(contact.email),
            hashed_phone=hash_phone(contact.phone),
            industry=contact.industry or "",
            location=contact.location or "",
            intent_score=contact.intent_score.value if contact.intent_score else "",
        )
        for contact in contacts
    ]


def generate_hashed_csv(contacts: Iterable[Contact]) -> str:
    """Render the hashed audience as CSV text."""

    return _render_csv(HASHED_CSV_COLUMNS, (row.as_list() for row in build_hashed_rows(contacts)))


# ============================================================================
# Webhook
# ============================================================================

def build_webhook_payload(contacts: Sequence[Contact], now: datetime) -> Dict[str, Any]:
    return {
        "contacts": [contact_to_dict(contact) for contact in contacts],
        "timestamp": to_iso_utc(now),
        "count": len(contacts),
    }


def send_to_webhook(
    webhook_url: str,
    contacts: Sequence[Contact],
    session: Optional[requests.Session] = None,
    now: Optional[datetime] = None,
    timeout: float = 30,
) -> bool:
    """
    POST the contact set to a webhook.

    Returns:
        True if the endpoint answered with a 2xx status, False otherwise
        (including network failures). No retry is attempted.
    """

    if session is None:
        with requests.Session() as http:
            return send_to_webhook(webhook_url, contacts, session=http, now=now, timeout=timeout)

    payload = build_webhook_payload(contacts, now or utc_now())

    try:
        response = session.post(webhook_url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Webhook error: {e}", extra={"webhook_url": webhook_url})
        return False

    delivered = 200 <= response.status_code < 300
    if not delivered:
        logger.warning(
            "Webhook rejected contact export",
            extra={"webhook_url": webhook_url, "status_code": response.status_code},
        )
    else:
        logger.info(
            f"Webhook delivered {payload['count']} contacts",
            extra={"webhook_url": webhook_url, "contact_count": payload["count"]},
        )
    return delivered


__all__ = [
    "CONTACT_CSV_COLUMNS",
    "HASHED_CSV_COLUMNS",
    "HashedAudienceRow",
    "build_hashed_rows",
    "build_webhook_payload",
    "generate_contacts_csv",
    "generate_hashed_csv",
    "hash_email",
    "hash_phone",
    "normalize_email",
    "normalize_phone",
    "sanitize_csv_field",
    "send_to_webhook",
]
