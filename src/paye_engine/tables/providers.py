"""Sources of tax tables: bundled JSON files or the database."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paye_engine.models import TaxYearTableRecord
from paye_engine.tables.loader import (
    available_tax_years,
    load_tax_year_tables,
    payload_hash,
    tables_from_payload,
)
from paye_engine.tables.types import (
    TaxTablesConfigError,
    TaxYearTables,
    UnsupportedTaxYearError,
)

logger = logging.getLogger(__name__)


class TaxTableProvider(Protocol):
    """Anything that can resolve a tax year to its tables."""

    async def get(self, tax_year: str) -> TaxYearTables: ...

    async def available(self) -> list[str]: ...


class BundledTaxTableProvider:
    """Tables shipped with the package under ``paye_engine/data``."""

    async def get(self, tax_year: str) -> TaxYearTables:
        return load_tax_year_tables(tax_year)

    async def available(self) -> list[str]:
        return available_tax_years()


class DatabaseTaxTableProvider:
    """Tables stored in the ``tax_year_table`` table.

    Parsed tables are cached per provider instance, keyed by tax year and
    payload hash, so a reseeded row is picked up by the next provider.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._cache: dict[tuple[str, str], TaxYearTables] = {}

    async def get(self, tax_year: str) -> TaxYearTables:
        record = await self.session.get(TaxYearTableRecord, tax_year)
        if record is None:
            raise UnsupportedTaxYearError(tax_year, await self.available())

        key = (record.tax_year, record.logic_hash)
        if key in self._cache:
            return self._cache[key]

        actual_hash = payload_hash(record.payload_json)
        if actual_hash != record.logic_hash:
            raise TaxTablesConfigError(
                tax_year,
                f"payload hash mismatch (stored {record.logic_hash[:12]}, "
                f"computed {actual_hash[:12]})",
            )

        tables = tables_from_payload(record.payload_json)
        if tables.tax_year != tax_year:
            raise TaxTablesConfigError(
                tax_year, f"payload declares tax_year {tables.tax_year!r}"
            )

        logger.debug("Loaded tax tables for %s from database", tax_year)
        self._cache[key] = tables
        return tables

    async def available(self) -> list[str]:
        result = await self.session.execute(
            select(TaxYearTableRecord.tax_year).order_by(TaxYearTableRecord.tax_year)
        )
        return list(result.scalars().all())
