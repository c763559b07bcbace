"""Per-tax-year rate tables."""

from paye_engine.tables.loader import (
    available_tax_years,
    load_tax_year_tables,
    payload_hash,
    read_bundled_payload,
    tables_from_payload,
)
from paye_engine.tables.providers import (
    BundledTaxTableProvider,
    DatabaseTaxTableProvider,
    TaxTableProvider,
)
from paye_engine.tables.seed import upsert_tax_year_table
from paye_engine.tables.types import (
    IncomeTaxBand,
    IncomeTaxSchedule,
    NICategoryRates,
    NIThresholds,
    PeriodThreshold,
    PersonalAllowance,
    QualifyingEarnings,
    StudentLoanTerms,
    TaxTablesConfigError,
    TaxTablesError,
    TaxYearTables,
    UnsupportedTaxYearError,
)

__all__ = [
    "available_tax_years",
    "load_tax_year_tables",
    "payload_hash",
    "read_bundled_payload",
    "tables_from_payload",
    "BundledTaxTableProvider",
    "DatabaseTaxTableProvider",
    "TaxTableProvider",
    "IncomeTaxBand",
    "IncomeTaxSchedule",
    "NICategoryRates",
    "NIThresholds",
    "PeriodThreshold",
    "PersonalAllowance",
    "QualifyingEarnings",
    "StudentLoanTerms",
    "TaxTablesConfigError",
    "TaxTablesError",
    "TaxYearTables",
    "UnsupportedTaxYearError",
    "upsert_tax_year_table",
]
