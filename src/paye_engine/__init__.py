"""UK PAYE payroll calculation engine.

Calculates income tax, National Insurance, student loan and pension for one
employee and one pay period, from versioned per-tax-year tables.
"""

from paye_engine.calculators import (
    InvalidTaxCodeError,
    NICategory,
    PayFrequency,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PayrollEngine,
    PayrollInputError,
    PensionBasis,
    StudentLoanPlan,
    TaxRegime,
    ValidationResult,
    annualize_amount,
    calculate_payroll,
    is_valid_tax_code,
    parse_tax_code,
    period_number_for_date,
    periodize_amount,
    tax_year_for_date,
    validate_payroll_inputs,
)
from paye_engine.calculators.allowance import tapered_personal_allowance
from paye_engine.tables import (
    TaxTablesConfigError,
    TaxTablesError,
    TaxYearTables,
    UnsupportedTaxYearError,
    available_tax_years,
    load_tax_year_tables,
)

__version__ = "0.1.0"

__all__ = [
    "InvalidTaxCodeError",
    "NICategory",
    "PayFrequency",
    "PayrollCalculationInput",
    "PayrollCalculationResult",
    "PayrollEngine",
    "PayrollInputError",
    "PensionBasis",
    "StudentLoanPlan",
    "TaxRegime",
    "ValidationResult",
    "annualize_amount",
    "calculate_payroll",
    "is_valid_tax_code",
    "parse_tax_code",
    "period_number_for_date",
    "periodize_amount",
    "tax_year_for_date",
    "validate_payroll_inputs",
    "tapered_personal_allowance",
    "TaxTablesConfigError",
    "TaxTablesError",
    "TaxYearTables",
    "UnsupportedTaxYearError",
    "available_tax_years",
    "load_tax_year_tables",
]
