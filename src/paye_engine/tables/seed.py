"""Copying tax table payloads into the database."""

from __future__ import annotations

import copy
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from paye_engine.models import TaxYearTableRecord
from paye_engine.tables.loader import payload_hash, tables_from_payload

logger = logging.getLogger(__name__)


async def upsert_tax_year_table(session: AsyncSession, payload: dict[str, Any]) -> str:
    """Store a payload as the tables for its tax year.

    The payload is parsed first, so invalid tables never reach the database.

    Returns:
        "created", "updated" or "unchanged".

    Raises:
        TaxTablesConfigError: If the payload is malformed.
    """
    tables = tables_from_payload(payload)
    digest = payload_hash(payload)

    record = await session.get(TaxYearTableRecord, tables.tax_year)
    if record is None:
        session.add(
            TaxYearTableRecord(
                tax_year=tables.tax_year,
                start_date=tables.start_date,
                end_date=tables.end_date,
                source_url=tables.source_url,
                logic_hash=digest,
                payload_json=copy.deepcopy(payload),
            )
        )
        await session.flush()
        logger.info("Stored tax tables for %s", tables.tax_year)
        return "created"

    if record.logic_hash == digest:
        return "unchanged"

    record.start_date = tables.start_date
    record.end_date = tables.end_date
    record.source_url = tables.source_url
    record.logic_hash = digest
    record.payload_json = copy.deepcopy(payload)
    await session.flush()
    logger.info("Updated tax tables for %s (hash %s)", tables.tax_year, digest[:12])
    return "updated"
