#!/usr/bin/env python3
"""
CSV Contact Ingestion Script

Imports contacts from a CSV file into the configured contact store with:
- Per-row validation (email or phone required)
- Intent scoring of every accepted row
- Summary statistics and error logging

Usage:
    python scripts/ingest_csv_contacts.py path/to/contacts.csv
    python scripts/ingest_csv_contacts.py path/to/contacts.csv --dry-run
    python scripts/ingest_csv_contacts.py contacts.csv --store data/contacts.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.intent import get_intent_summary, score_contacts
from domain.time import utc_now
from repositories.contact_repository import JsonFileContactStore
from services.contact_service import ContactService
from services.ingestion_service import IngestionResult, ingest_csv_text


def ingest_csv(
    csv_path: str,
    store_path: str = "contacts.json",
    dry_run: bool = False,
) -> IngestionResult:
    """
    Ingest contacts from a CSV file into a JSON contact store.

    Args:
        csv_path: Path to the CSV file
        store_path: Path to the JSON contact store
        dry_run: If True, parse, validate and score but don't write

    Returns:
        IngestionResult with accepted contacts and per-row errors

    Raises:
        FileNotFoundError: If CSV file doesn't exist
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    print(f"Reading CSV: {csv_path}")
    print(f"Contact store: {store_path}")
    print(f"Dry run: {dry_run}")
    print()

    text = csv_file.read_text(encoding="utf-8-sig")

    if dry_run:
        now = utc_now()
        result = ingest_csv_text(text, now)
        result.contacts = score_contacts(result.contacts, now)
        return result

    service = ContactService(JsonFileContactStore(store_path))
    return service.import_csv_text(text)


def print_summary(result: IngestionResult) -> None:
    """Print ingestion summary statistics."""
    summary = get_intent_summary(result.contacts)

    print()
    print("=" * 60)
    print("INGESTION SUMMARY")
    print("=" * 60)
    print(f"Total Rows:       {result.total_rows}")
    print(f"Imported:         {result.accepted}")
    print(f"Rejected:         {result.rejected}")
    print()
    print(f"High Intent:      {summary['High']}")
    print(f"Medium Intent:    {summary['Medium']}")
    print(f"Low Intent:       {summary['Low']}")
    print()

    if result.errors:
        print(f"Errors:           {len(result.errors)}")
        print()
        print("First 5 errors:")
        for error in result.errors[:5]:
            print(f"  - {error}")
        if len(result.errors) > 5:
            print(f"  ... and {len(result.errors) - 5} more")
    else:
        print("No errors!")

    print("=" * 60)


def save_error_log(errors: list[str], output_path: str) -> None:
    """Save error details to JSON file."""
    if not errors:
        return

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(errors, f, indent=2)

    print(f"\nError log saved to: {output_path}")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Ingest contacts from CSV and score their purchase intent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic import
  python ingest_csv_contacts.py contacts.csv

  # Dry run (parse and score only, don't store)
  python ingest_csv_contacts.py contacts.csv --dry-run

  # Save error log to custom path
  python ingest_csv_contacts.py contacts.csv --error-log errors.json
        """
    )

    parser.add_argument(
        "csv_path",
        help="Path to the CSV file to ingest"
    )

    parser.add_argument(
        "--store",
        default="contacts.json",
        help="Path to the JSON contact store (default: contacts.json)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse, validate and score without writing to the store"
    )

    parser.add_argument(
        "--error-log",
        default="ingestion_errors.json",
        help="Path to save error log (default: ingestion_errors.json)"
    )

    args = parser.parse_args()

    try:
        print("Starting CSV ingestion...")
        print()

        result = ingest_csv(
            csv_path=args.csv_path,
            store_path=args.store,
            dry_run=args.dry_run,
        )

        print_summary(result)

        if result.errors:
            save_error_log(result.errors, args.error_log)

        # Exit code based on results
        if result.rejected > 0:
            return 1  # Partial success
        return 0

    except KeyboardInterrupt:
        print("\n\nIngestion interrupted by user")
        return 130

    except Exception as e:
        print(f"\nFATAL ERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
