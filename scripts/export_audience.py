#!/usr/bin/env python3
"""
Audience Export Script

Filters the stored contacts and exports the audience as plain CSV, hashed CSV
(SHA-256 email/phone), or a webhook push.

Usage:
    python scripts/export_audience.py --output audience.csv
    python scripts/export_audience.py --intent High --format hashed --output hashed.csv
    python scripts/export_audience.py --industry tech --format webhook --webhook-url https://example.com/hook
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.audience import AudienceFilter, DateRange, filter_contacts
from domain.contact import Contact, IntentLevel
from domain.intent import get_intent_summary
from domain.time import parse_utc_datetime
from repositories.contact_repository import JsonFileContactStore
from repositories.settings_repository import load_settings
from services.export_service import generate_contacts_csv, generate_hashed_csv, send_to_webhook


def _parse_bound(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_utc_datetime(value)
    if parsed is None:
        raise ValueError(f"Invalid {name} date: {value}")
    return parsed


def build_filter(args: argparse.Namespace) -> AudienceFilter:
    """Translate CLI arguments into an AudienceFilter."""
    start = _parse_bound(args.start, "--start")
    end = _parse_bound(args.end, "--end")
    if (start is None) != (end is None):
        raise ValueError("--start and --end must be given together")

    return AudienceFilter(
        industry=args.industry,
        location=args.location,
        intent_levels=frozenset(IntentLevel(level) for level in args.intent) if args.intent else None,
        date_range=DateRange(start=start, end=end) if start and end else None,
        keywords=tuple(args.keyword) if args.keyword else None,
    )


def write_export(contacts: List[Contact], export_format: str, output_path: str) -> None:
    """Write a CSV export (plain or hashed) to a UTF-8 file."""
    if export_format == "hashed":
        content = generate_hashed_csv(contacts)
    else:
        content = generate_contacts_csv(contacts)

    Path(output_path).write_text(content, encoding="utf-8")
    print(f"✓ Successfully exported {len(contacts)} contacts to {output_path}")


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Export a filtered audience from the contact store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export every contact
  python export_audience.py --output all_contacts.csv

  # Export only High intent contacts as a hashed audience
  python export_audience.py --intent High --format hashed --output hashed.csv

  # Contacts in tech with recent activity
  python export_audience.py --industry tech --start 2025-01-01 --end 2025-01-31T23:59:59Z --output jan.csv

  # Push Medium and High intent contacts to the configured webhook
  python export_audience.py --intent High --intent Medium --format webhook
        """
    )

    parser.add_argument("--store", default="contacts.json", help="Path to the JSON contact store")
    parser.add_argument("--output", "-o", help="Path to output CSV file (csv and hashed formats)")
    parser.add_argument(
        "--format",
        "-f",
        choices=["csv", "hashed", "webhook"],
        default="csv",
        help="Export format (default: csv)"
    )
    parser.add_argument("--industry", help="Industry substring")
    parser.add_argument("--location", help="Location substring")
    parser.add_argument(
        "--intent",
        action="append",
        choices=[level.value for level in IntentLevel],
        help="Intent level to include (repeatable)"
    )
    parser.add_argument("--keyword", action="append", help="Keyword substring (repeatable)")
    parser.add_argument("--start", help="Activity date range start (ISO-8601)")
    parser.add_argument("--end", help="Activity date range end (ISO-8601)")
    parser.add_argument("--webhook-url", help="Webhook URL (defaults to configured WEBHOOK_URL)")

    args = parser.parse_args()

    if args.format in ("csv", "hashed") and not args.output:
        parser.error("--output is required for csv and hashed formats")

    try:
        criteria = build_filter(args)

        print("Loading contacts...")
        contacts = JsonFileContactStore(args.store).load_all()
        audience = filter_contacts(contacts, criteria)

        print(f"  Contacts in store: {len(contacts)}")
        print(f"  Matching audience: {len(audience)}")
        print()

        if not audience:
            print("No contacts found matching the specified filters")
            return 1

        if args.format == "webhook":
            webhook_url = args.webhook_url or load_settings().webhook_url
            if not webhook_url:
                print("No webhook URL configured", file=sys.stderr)
                return 1
            if not send_to_webhook(webhook_url, audience):
                print("Webhook delivery failed", file=sys.stderr)
                return 1
            print(f"✓ Sent {len(audience)} contacts to webhook")
        else:
            write_export(audience, args.format, args.output)

        summary = get_intent_summary(audience)
        print()
        print("=" * 60)
        print("EXPORT SUMMARY")
        print("=" * 60)
        print(f"Total contacts exported: {len(audience)}")
        print(f"  High:   {summary['High']}")
        print(f"  Medium: {summary['Medium']}")
        print(f"  Low:    {summary['Low']}")
        print("=" * 60)

        return 0

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
