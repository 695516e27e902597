#!/usr/bin/env python3
"""
Export Notes

Dumps every decodable note in the configured Notion database as JSON,
e.g. for offline practice sessions or a backup before editing the schema.

Usage:
    Requires NOTION_API_KEY and NOTION_DATABASE_ID (env or .env):
    $ python scripts/export_notes.py
    $ python scripts/export_notes.py --output notes.json --pillar security
    $ python scripts/export_notes.py --list-pillars
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from saa_notes.core.exceptions import NoteStoreError
from saa_notes.core.logging import setup_logging
from saa_notes.core.notion import NotionClient
from saa_notes.repositories import notes as repo
from saa_notes.schemas.notes import StoredNote
from saa_notes.services.pillars import describe_pillars, normalize_pillar

logger = logging.getLogger("saa_notes.scripts.export_notes")


def filter_by_pillar(records: list[StoredNote], pillar: str | None) -> list[StoredNote]:
    """Keep the records tagged with ``pillar`` (any label form accepted)."""
    if not pillar:
        return records
    slug = normalize_pillar(pillar)
    return [r for r in records if slug in r.note.well_architected_categories]


async def export(output: Path | None, pillar: str | None) -> int:
    async with NotionClient() as client:
        records = await repo.list_records(client)

    records = filter_by_pillar(records, pillar)
    payload = json.dumps(
        [record.model_dump(mode="json") for record in records],
        ensure_ascii=False,
        indent=2,
    )

    if output is None:
        print(payload)
    else:
        output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote %d notes to %s", len(records), output)
    return len(records)


def main() -> int:
    parser = argparse.ArgumentParser(description="Export SAA notes from Notion as JSON")
    parser.add_argument(
        "--output", type=Path, default=None, help="Write to this file instead of stdout"
    )
    parser.add_argument(
        "--pillar", default=None, help="Only notes tagged with this Well-Architected pillar"
    )
    parser.add_argument(
        "--list-pillars",
        action="store_true",
        help="Print the accepted --pillar values and exit",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    if args.list_pillars:
        print("\n".join(describe_pillars()))
        return 0

    # Logs go to stdout; keep them quiet when the JSON does too
    setup_logging(args.log_level or ("INFO" if args.output else "WARNING"))

    try:
        asyncio.run(export(args.output, args.pillar))
    except NoteStoreError as e:
        logger.error("Export failed: %s", e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
