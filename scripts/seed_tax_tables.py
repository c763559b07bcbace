"""Seed script for tax year tables.

Run with:
    python scripts/seed_tax_tables.py              # every bundled tax year
    python scripts/seed_tax_tables.py 2025-26      # selected years
    python scripts/seed_tax_tables.py --file my-tables.json

Copies bundled (or given) JSON payloads into the tax_year_table table so the
API can serve them with TAX_TABLES_SOURCE=database.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from paye_engine.config import configure_logging
from paye_engine.database import create_tables, dispose_db, get_session
from paye_engine.tables.loader import available_tax_years, read_bundled_payload
from paye_engine.tables.seed import upsert_tax_year_table


def load_payloads(tax_years: list[str], files: list[Path]) -> list[dict]:
    """Collect payloads from bundled years and files."""
    payloads = [json.loads(path.read_text(encoding="utf-8")) for path in files]
    if not files and not tax_years:
        tax_years = available_tax_years()
    payloads.extend(read_bundled_payload(year) for year in tax_years)
    return payloads


async def main(tax_years: list[str], files: list[Path]) -> None:
    """Seed the database."""
    print("Seeding tax tables...")

    await create_tables()
    try:
        async with get_session() as session:
            for payload in load_payloads(tax_years, files):
                outcome = await upsert_tax_year_table(session, payload)
                print(f"{payload['tax_year']}: {outcome}")
    finally:
        await dispose_db()

    print("\nDone! Tax tables seeded successfully.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed tax year tables")
    parser.add_argument("tax_years", nargs="*", help="Bundled tax years to seed (default: all)")
    parser.add_argument("--file", dest="files", type=Path, action="append", default=[],
                        help="JSON payload file to seed")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(main(args.tax_years, args.files))
