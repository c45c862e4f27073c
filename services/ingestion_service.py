"""
CSV ingestion for contacts.

Turns raw CSV text (or already-parsed rows) into unscored Contact records.

Validation:
- A row must carry an email or a phone number. Rows without either are
  rejected with a row-indexed message; the rest of the batch continues.

Normalization:
- Cells are trimmed; blank cells become None.
- keywords is a comma-joined cell, split and trimmed; blank entries dropped.
- activityDate defaults to the ingestion time when blank. An unparsable date
  is dropped (no recency signal) and logged.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO
from typing import Iterable, List, Mapping, Optional, Tuple
from uuid import uuid4

from domain.contact import Contact, ContactSource
from domain.time import parse_utc_datetime

logger = logging.getLogger(__name__)

CSV_TEMPLATE_COLUMNS = [
    "email",
    "phone",
    "name",
    "company",
    "industry",
    "location",
    "keywords",
    "activityDate",
]

CSV_TEMPLATE_EXAMPLE = [
    "john@example.com",
    "555-1234",
    "John Doe",
    "Acme Corp",
    "Technology",
    "San Francisco CA",
    "buy,demo,pricing",
    "",
]


@dataclass
class IngestionResult:
    """Results from a CSV ingestion operation."""
    contacts: List[Contact] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    total_rows: int = 0

    @property
    def accepted(self) -> int:
        return len(self.contacts)

    @property
    def rejected(self) -> int:
        return len(self.errors)


def new_contact_id() -> str:
    return str(uuid4())


def parse_csv_text(text: str) -> List[dict[str, str]]:
    """
    Parse CSV text with a header row into row dictionaries.

    Blank lines are skipped and a leading UTF-8 byte order mark is ignored.
    Header names are trimmed so " email" and "email" are the same column.
    """

    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.DictReader(StringIO(text))
    if reader.fieldnames:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

    rows = []
    for row in reader:
        values = [value for key, value in row.items() if key is not None]
        if all(not (value or "").strip() for value in values):
            continue
        rows.append({key: value or "" for key, value in row.items() if key is not None})
    return rows


def _clean(row: Mapping[str, Optional[str]], key: str) -> Optional[str]:
    value = (row.get(key) or "").strip()
    return value if value else None


def split_keywords(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def validate_row(row: Mapping[str, Optional[str]], row_num: int) -> tuple[bool, str | None]:
    """
    Validate that a CSV row identifies a reachable contact.

    Args:
        row: CSV row dictionary
        row_num: 1-based data row number for error reporting

    Returns:
        Tuple of (is_valid, error_message)
    """

    if not _clean(row, "email") and not _clean(row, "phone"):
        return False, f"Row {row_num}: Must have email or phone"
    return True, None


def create_contact_from_row(row: Mapping[str, Optional[str]], now: datetime) -> Contact:
    """
    Create an unscored Contact from a CSV row.

    Args:
        row: CSV row dictionary (already validated)
        now: Ingestion time, used for created_at / updated_at and as the
            default activity date

    Returns:
        Contact with source=csv and no intent_score
    """

    raw_date = _clean(row, "activityDate")
    if raw_date is None:
        activity_date: Optional[datetime] = now
    else:
        activity_date = parse_utc_datetime(raw_date)
        if activity_date is None:
            logger.warning(
                "Unparsable activityDate ignored",
                extra={"activity_date": raw_date[:100]},
            )

    return Contact(
        contact_id=new_contact_id(),
        source=ContactSource.CSV,
        created_at=now,
        updated_at=now,
        email=_clean(row, "email"),
        phone=_clean(row, "phone"),
        name=_clean(row, "name"),
        company=_clean(row, "company"),
        industry=_clean(row, "industry"),
        location=_clean(row, "location"),
        keywords=split_keywords(_clean(row, "keywords")),
        activity_date=activity_date,
    )


def ingest_rows(rows: Iterable[Mapping[str, Optional[str]]], now: datetime) -> IngestionResult:
    """
    Convert parsed CSV rows into contacts, collecting per-row errors.

    A bad row never aborts the batch.
    """

    result = IngestionResult()

    for row_num, row in enumerate(rows, start=1):
        result.total_rows += 1

        is_valid, error_msg = validate_row(row, row_num)
        if not is_valid:
            result.errors.append(error_msg or f"Row {row_num}: Invalid row")
            continue

        try:
            result.contacts.append(create_contact_from_row(row, now))
        except ValueError as e:
            result.errors.append(f"Row {row_num}: {e}")

    if result.errors:
        logger.warning(
            "CSV rows rejected",
            extra={"rejected": result.rejected, "total_rows": result.total_rows},
        )
    logger.info(
        f"Ingested {result.accepted} of {result.total_rows} CSV rows",
        extra={"accepted": result.accepted, "rejected": result.rejected},
    )
    return result


def ingest_csv_text(text: str, now: datetime) -> IngestionResult:
    """Parse CSV text and ingest every row."""

    return ingest_rows(parse_csv_text(text), now)


def generate_csv_template() -> str:
    """CSV template with the accepted columns and one example row."""

    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_TEMPLATE_COLUMNS)
    writer.writerow(CSV_TEMPLATE_EXAMPLE)
    return output.getvalue()


__all__ = [
    "CSV_TEMPLATE_COLUMNS",
    "IngestionResult",
    "create_contact_from_row",
    "generate_csv_template",
    "ingest_csv_text",
    "ingest_rows",
    "new_contact_id",
    "parse_csv_text",
    "split_keywords",
    "validate_row",
]
